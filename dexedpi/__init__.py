"""Computer-keyboard MIDI input, RTP-MIDI packets and performance files for an FM synthesizer."""

__version__ = "0.1.0"