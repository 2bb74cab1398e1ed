import json
import time
import socketio

SERVER = 'http://127.0.0.1:3000'
CONNECT_TIMEOUT = 5
SERIAL = 'PI-SIM-0001'

# two devices: one speaking socket.io events, one sending legacy tagged messages
player = socketio.Client(logger=True, engineio_logger=True)
legacy = socketio.Client(logger=True, engineio_logger=True)

@player.event
def connect():
    print('[PLAYER] connected')

@player.on('welcome')
def on_welcome(d):
    print('[PLAYER] welcome', d)

@legacy.event
def connect():
    print('[LEGACY] connected')


@player.event
def connect_error(data):
    print('[PLAYER] connect_error', data)


@legacy.event
def connect_error(data):
    print('[LEGACY] connect_error', data)


def connect_client(name, client):
    try:
        client.connect(SERVER, wait=True, wait_timeout=CONNECT_TIMEOUT)
        print(f'{name} connected')
    except Exception as e:
        print(f'{name} connect error', e)


def settings(serial, name):
    return {'cpuSerialNumber': serial, 'name': name, 'version': '4.1.0', 'TZ': 'Europe/Zagreb'}


def status(last_upload):
    return {'lastUpload': last_upload, 'tvStatus': True, 'diskSpaceUsed': '12%', 'piTemperature': '47C'}


def run():
    print('Connecting clients...')
    connect_client('player', player)
    connect_client('legacy', legacy)

    time.sleep(1)

    if player.connected:
        # first report pushes, the second one inside 60s is throttled, priority forces it
        for priority in (False, False, True):
            ack = player.call('status', (settings(SERIAL, 'Sim Lobby'), status(int(time.time())), priority))
            print('[PLAYER] status ack', ack)
            time.sleep(1)
        player.emit('secret_ack', True)
        player.emit('upload', (SERIAL, 'player.log', 'line1\nline2\n'))

    if legacy.connected:
        msg = json.dumps(['status', settings(SERIAL + '-L', 'Sim Legacy'), status(0), False])
        legacy.send(msg)

    time.sleep(2)

    player.disconnect()
    legacy.disconnect()

if __name__ == '__main__':
    run()
