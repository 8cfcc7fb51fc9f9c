"""Settings of a performance: every tone generator plus the shared effects."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import NamedTuple

ALL_TONE_GENERATORS = 16
NUM_VOICE_PARAM = 156

MIDI_CHANNELS = 16
OMNI_MODE = MIDI_CHANNELS
DISABLED = MIDI_CHANNELS + 1

_OMNI_ON_DISK = 255

_UNSIGNED = re.compile(r"\+?\d+")
_SIGNED = re.compile(r"[+-]?\d+")


@dataclass
class ToneGeneratorSettings:
    """Configuration of a single tone generator."""

    bank_number: int = 0
    voice_number: int = 0
    midi_channel: int = DISABLED
    volume: int = 100
    pan: int = 64
    detune: int = 0
    cutoff: int = 99
    resonance: int = 0
    note_limit_low: int = 0
    note_limit_high: int = 127
    note_shift: int = 0
    reverb_send: int = 50
    pitch_bend_range: int = 2
    pitch_bend_step: int = 0
    portamento_mode: int = 0
    portamento_glissando: int = 0
    portamento_time: int = 0
    voice_data: str = ""
    mono_mode: bool = False
    modulation_wheel_range: int = 99
    modulation_wheel_target: int = 1
    foot_control_range: int = 99
    foot_control_target: int = 0
    breath_control_range: int = 99
    breath_control_target: int = 0
    aftertouch_range: int = 99
    aftertouch_target: int = 0
    compressor_enable: bool = True
    compressor_pre_gain: int = 0
    compressor_attack: int = 5
    compressor_release: int = 200
    compressor_thresh: int = -20
    compressor_ratio: int = 5
    eq_low: int = 0
    eq_mid: int = 0
    eq_high: int = 0
    eq_gain: int = 0
    eq_low_mid_freq: int = 24
    eq_mid_high_freq: int = 44

    @property
    def voice_data_filled(self) -> bool:
        """Whether the tone generator carries its own voice data."""
        return self.voice_data != ""


def _default_tone_generators() -> list[ToneGeneratorSettings]:
    return [ToneGeneratorSettings() for _ in range(ALL_TONE_GENERATORS)]


@dataclass
class PerformanceSettings:
    """A complete performance: per-tone-generator settings and global effects."""

    tone_generators: list[ToneGeneratorSettings] = field(default_factory=_default_tone_generators)

    reverb_enable: bool = True
    reverb_size: int = 70
    reverb_high_damp: int = 50
    reverb_low_damp: int = 50
    reverb_low_pass: int = 30
    reverb_diffusion: int = 65
    reverb_level: int = 99

    master_eq_low: int = 0
    master_eq_mid: int = 0
    master_eq_high: int = 0
    master_eq_gain: int = 0
    master_eq_low_mid_freq: int = 24
    master_eq_mid_high_freq: int = 44

    limiter_enable: bool = True
    limiter_pre_gain: int = 0
    limiter_attack: int = 5
    limiter_release: int = 5
    limiter_thresh: int = -3
    limiter_ratio: int = 20
    limiter_hp_filter_enable: bool = False

    @classmethod
    def from_properties(cls, properties: Mapping[str, object]) -> PerformanceSettings:
        """Build settings from ``key -> value`` properties, filling in defaults."""
        settings = cls()
        for index, tg in enumerate(settings.tone_generators, start=1):
            for spec in _TG_FIELDS:
                default = getattr(tg, spec.attr)
                value = _read(properties, f"{spec.key}{index}", spec.kind, default)
                setattr(tg, spec.attr, value)

        for spec in _GLOBAL_FIELDS:
            default = getattr(settings, spec.attr)
            setattr(settings, spec.attr, _read(properties, spec.key, spec.kind, default))

        # Older files switch the compressor off for all tone generators at once.
        if "CompressorEnable" in properties and _number(properties, "CompressorEnable", 1, False) == 0:
            for tg in settings.tone_generators:
                tg.compressor_enable = False

        return settings

    def to_properties(self, tone_generators: int = ALL_TONE_GENERATORS) -> dict[str, str]:
        """Return the settings as ordered properties for the first ``tone_generators``."""
        if not 0 <= tone_generators <= len(self.tone_generators):
            raise ValueError(
                f"tone generator count must be 0..{len(self.tone_generators)}, got {tone_generators}"
            )
        properties: dict[str, str] = {}
        for index, tg in enumerate(self.tone_generators[:tone_generators], start=1):
            for spec in _TG_FIELDS:
                properties[f"{spec.key}{index}"] = _write(spec.kind, getattr(tg, spec.attr))
        for spec in _GLOBAL_FIELDS:
            properties[spec.key] = _write(spec.kind, getattr(self, spec.attr))
        return properties

    def has_active_channel(self) -> bool:
        """Whether any tone generator listens on a MIDI channel."""
        return any(tg.midi_channel != DISABLED for tg in self.tone_generators)


class _Field(NamedTuple):
    key: str
    attr: str
    kind: str


_TG_FIELDS = (
    _Field("BankNumber", "bank_number", "unsigned"),
    _Field("VoiceNumber", "voice_number", "voice"),
    _Field("MIDIChannel", "midi_channel", "channel"),
    _Field("Volume", "volume", "unsigned"),
    _Field("Pan", "pan", "unsigned"),
    _Field("Detune", "detune", "signed"),
    _Field("Cutoff", "cutoff", "unsigned"),
    _Field("Resonance", "resonance", "unsigned"),
    _Field("NoteLimitLow", "note_limit_low", "unsigned"),
    _Field("NoteLimitHigh", "note_limit_high", "unsigned"),
    _Field("NoteShift", "note_shift", "signed"),
    _Field("ReverbSend", "reverb_send", "unsigned"),
    _Field("PitchBendRange", "pitch_bend_range", "unsigned"),
    _Field("PitchBendStep", "pitch_bend_step", "unsigned"),
    _Field("PortamentoMode", "portamento_mode", "unsigned"),
    _Field("PortamentoGlissando", "portamento_glissando", "unsigned"),
    _Field("PortamentoTime", "portamento_time", "unsigned"),
    _Field("VoiceData", "voice_data", "text"),
    _Field("MonoMode", "mono_mode", "bool"),
    _Field("ModulationWheelRange", "modulation_wheel_range", "unsigned"),
    _Field("ModulationWheelTarget", "modulation_wheel_target", "unsigned"),
    _Field("FootControlRange", "foot_control_range", "unsigned"),
    _Field("FootControlTarget", "foot_control_target", "unsigned"),
    _Field("BreathControlRange", "breath_control_range", "unsigned"),
    _Field("BreathControlTarget", "breath_control_target", "unsigned"),
    _Field("AftertouchRange", "aftertouch_range", "unsigned"),
    _Field("AftertouchTarget", "aftertouch_target", "unsigned"),
    _Field("CompressorEnable", "compressor_enable", "bool"),
    _Field("CompressorPreGain", "compressor_pre_gain", "signed"),
    _Field("CompressorAttack", "compressor_attack", "unsigned"),
    _Field("CompressorRelease", "compressor_release", "unsigned"),
    _Field("CompressorThresh", "compressor_thresh", "signed"),
    _Field("CompressorRatio", "compressor_ratio", "unsigned"),
    _Field("EQLow", "eq_low", "signed"),
    _Field("EQMid", "eq_mid", "signed"),
    _Field("EQHigh", "eq_high", "signed"),
    _Field("EQGain", "eq_gain", "signed"),
    _Field("EQLowMidFreq", "eq_low_mid_freq", "unsigned"),
    _Field("EQMidHighFreq", "eq_mid_high_freq", "unsigned"),
)

_GLOBAL_FIELDS = (
    _Field("ReverbEnable", "reverb_enable", "bool"),
    _Field("ReverbSize", "reverb_size", "unsigned"),
    _Field("ReverbHighDamp", "reverb_high_damp", "unsigned"),
    _Field("ReverbLowDamp", "reverb_low_damp", "unsigned"),
    _Field("ReverbLowPass", "reverb_low_pass", "unsigned"),
    _Field("ReverbDiffusion", "reverb_diffusion", "unsigned"),
    _Field("ReverbLevel", "reverb_level", "unsigned"),
    _Field("MasterEQLow", "master_eq_low", "signed"),
    _Field("MasterEQMid", "master_eq_mid", "signed"),
    _Field("MasterEQHigh", "master_eq_high", "signed"),
    _Field("MasterEQGain", "master_eq_gain", "signed"),
    _Field("MasterEQLowMidFreq", "master_eq_low_mid_freq", "unsigned"),
    _Field("MasterEQMidHighFreq", "master_eq_mid_high_freq", "unsigned"),
    _Field("LimiterEnable", "limiter_enable", "bool"),
    _Field("LimiterPreGain", "limiter_pre_gain", "signed"),
    _Field("LimiterAttack", "limiter_attack", "unsigned"),
    _Field("LimiterRelease", "limiter_release", "unsigned"),
    _Field("LimiterThresh", "limiter_thresh", "signed"),
    _Field("LimiterRatio", "limiter_ratio", "unsigned"),
    _Field("LimiterHPFilterEnable", "limiter_hp_filter_enable", "bool"),
)


def _number(properties: Mapping[str, object], key: str, default: int, signed: bool) -> int:
    raw = properties.get(key)
    if raw is None:
        return default
    text = str(raw).strip()
    pattern = _SIGNED if signed else _UNSIGNED
    if not pattern.fullmatch(text):
        return default
    return int(text, 10)


def _encode(kind: str, value) -> int:
    if kind == "bool":
        return 1 if value else 0
    if kind == "voice":
        return value + 1
    if kind == "channel":
        if value < MIDI_CHANNELS:
            return value + 1
        if value == OMNI_MODE:
            return _OMNI_ON_DISK
        return 0
    return value


def _decode(kind: str, number: int):
    if kind == "bool":
        return number != 0
    if kind == "voice":
        return number - 1 if number > 0 else 0
    if kind == "channel":
        if number == 0:
            return DISABLED
        if number <= MIDI_CHANNELS:
            return number - 1
        return OMNI_MODE
    return number


def _read(properties: Mapping[str, object], key: str, kind: str, default):
    if kind == "text":
        raw = properties.get(key)
        return default if raw is None else str(raw)
    number = _number(properties, key, _encode(kind, default), kind == "signed")
    return _decode(kind, number)


def _write(kind: str, value) -> str:
    if kind == "text":
        return str(value)
    return str(_encode(kind, value))