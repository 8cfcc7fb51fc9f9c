# dexedpi

Building blocks for the control side of an FM synthesizer. The package
plays MIDI notes from a computer keyboard, encodes and decodes AppleMIDI and
RTP-MIDI packets, and reads and writes the performance files that hold a
synthesizer's setup.

The modules:

- `dexedpi.pckeyboard` – `key_number()` and `PCKeyboard`. Raw USB HID key
  reports go in and note-on and note-off messages come out. The layout is
  QWERTY, with the `Z` row and the `Q` row as two piano octaves.
- `dexedpi.rtpmidi` – parsing and building of AppleMIDI session packets
  (invitation, acceptance, rejection, sync, receiver feedback, end session)
  and of RTP-MIDI packets, including running status and segmented SysEx.
- `dexedpi.performance` – `PerformanceSettings` and
  `ToneGeneratorSettings`. They hold every parameter of a performance, with
  the defaults that the performance format uses.
- `dexedpi.performancefile` – reading and writing `performance.ini`-style
  property files, and converting voice data to and from hex text.
- `dexedpi.performancebanks` – `PerformanceLibrary` manages a directory of
  numbered performance banks (`performance/001_Bank Name/000002_Name.ini`).

Requires Python 3.10 or later. There are no dependencies outside the
standard library.

## Computer keyboard as a MIDI keyboard

```python
from dexedpi.pckeyboard import PCKeyboard, key_number

print(key_number(0x1D))          # HID code of 'Z' -> MIDI note 60

keyboard = PCKeyboard(handler=print)
keyboard.key_status(0, bytes([0x1D, 0, 0, 0, 0, 0]))   # b'\x90<d'  (note on 60)
keyboard.key_status(0, bytes(6))                       # b'\x80<\x00' (note off 60)
```

A report must hold exactly six key codes. If it does not, `ValueError` is
raised. `device_removed()` sets `connected` to `False`.

## RTP-MIDI packets

```python
from dexedpi.rtpmidi import Command, build_midi_packet, build_session_packet, parse_midi_packet

packet = build_midi_packet(sequence=1, ssrc=0x1234, data=bytes([0x90, 60, 100]))
header = parse_midi_packet(packet, handler=print)     # prints b'\x90<d'
print(header.sequence)                                # 1

reply = build_session_packet(Command.INVITATION_ACCEPTED, initiator_token=7, ssrc=0x1234,
                             name="Synth")
```

`parse_invitation`, `parse_end_session` and `parse_sync` return a
`SessionPacket` or a `SyncPacket`. If the data is not a packet of that kind,
they return `None`. `build_sync_packet` and `build_feedback_packet` encode
the replies that a session participant sends.

## Performance files

```python
from dexedpi.performancefile import load_performance, save_performance

settings = load_performance("performance.ini")
print(settings.has_active_channel())
save_performance(settings, "copy.ini", 8)
```

`voice_data_to_text()` and `voice_data_from_text()` convert the 156 voice
parameters to and from the space-separated hex text that is stored under
`VoiceDataN`.

`PerformanceLibrary(root, tone_generators)` works with a whole directory
tree. The file `root/performance.ini` is the first performance of the
first bank. `list_banks()` and `list_performances()` scan the directories.
`select_bank()` and `select_performance()` choose what `load()` and
`save(settings)` work on. `create_performance()` and
`delete_performance()` add and remove files. `set_new_performance_name()`
sets the name of the next file that is created. The default performance
cannot be deleted.

## What the package does not do

The package has no I/O of its own besides files. It does not open serial
ports, USB devices or network sockets. It does not run an AppleMIDI session:
`dexedpi.rtpmidi` only encodes and decodes packets, so sending and receiving
them, and the invitation and sync state machine, are up to the caller. There
is no command-line program and no sound generation.