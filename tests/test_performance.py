import pytest

from dexedpi.performance import (
    ALL_TONE_GENERATORS,
    DISABLED,
    OMNI_MODE,
    PerformanceSettings,
    ToneGeneratorSettings,
)


def test_empty_properties_give_source_defaults():
    settings = PerformanceSettings.from_properties({})
    tg = settings.tone_generators[0]
    assert tg.volume == 100
    assert tg.pan == 64
    assert tg.compressor_release == 200
    assert tg.compressor_thresh == -20
    assert tg.voice_number == 0
    assert tg.midi_channel == DISABLED
    assert settings.limiter_thresh == -3
    assert settings.reverb_enable is True
    assert settings.limiter_hp_filter_enable is False


def test_loads_all_tone_generators():
    settings = PerformanceSettings.from_properties({})
    assert len(settings.tone_generators) == ALL_TONE_GENERATORS


def test_no_channel_means_not_active():
    assert PerformanceSettings.from_properties({}).has_active_channel() is False


@pytest.mark.parametrize(
    "raw, expected",
    [("0", DISABLED), ("1", 0), ("16", 15), ("17", OMNI_MODE), ("255", OMNI_MODE)],
)
def test_midi_channel_mapping(raw, expected):
    settings = PerformanceSettings.from_properties({"MIDIChannel1": raw})
    assert settings.tone_generators[0].midi_channel == expected


def test_channel_makes_performance_active():
    settings = PerformanceSettings.from_properties({"MIDIChannel3": "5"})
    assert settings.has_active_channel() is True


def test_omni_saved_as_255_and_disabled_as_zero():
    settings = PerformanceSettings()
    settings.tone_generators[0].midi_channel = OMNI_MODE
    props = settings.to_properties(2)
    assert props["MIDIChannel1"] == "255"
    assert props["MIDIChannel2"] == "0"


def test_voice_number_is_one_based_on_disk():
    settings = PerformanceSettings.from_properties({"VoiceNumber1": "5", "VoiceNumber2": "0"})
    assert settings.tone_generators[0].voice_number == 4
    assert settings.tone_generators[1].voice_number == 0
    assert settings.to_properties(1)["VoiceNumber1"] == "5"


def test_signed_values_read_negative():
    settings = PerformanceSettings.from_properties({"Detune1": "-7", "NoteShift2": "-12"})
    assert settings.tone_generators[0].detune == -7
    assert settings.tone_generators[1].note_shift == -12


def test_unsigned_value_rejects_negative_and_garbage():
    settings = PerformanceSettings.from_properties({"Volume1": "-3", "Pan1": "abc"})
    assert settings.tone_generators[0].volume == 100
    assert settings.tone_generators[0].pan == 64


def test_legacy_compressor_switch_disables_all():
    settings = PerformanceSettings.from_properties({"CompressorEnable": "0", "CompressorEnable1": "1"})
    assert all(not tg.compressor_enable for tg in settings.tone_generators)


def test_legacy_compressor_switch_on_keeps_per_tg():
    settings = PerformanceSettings.from_properties({"CompressorEnable": "1", "CompressorEnable2": "0"})
    assert settings.tone_generators[0].compressor_enable is True
    assert settings.tone_generators[1].compressor_enable is False


def test_to_properties_limits_tone_generators():
    props = PerformanceSettings().to_properties(8)
    assert "BankNumber8" in props
    assert "BankNumber9" not in props
    assert "ReverbEnable" in props


def test_to_properties_starts_with_bank_number():
    props = PerformanceSettings().to_properties(1)
    assert next(iter(props)) == "BankNumber1"


def test_booleans_written_as_digits():
    settings = PerformanceSettings()
    settings.tone_generators[0].mono_mode = True
    settings.reverb_enable = False
    props = settings.to_properties(1)
    assert props["MonoMode1"] == "1"
    assert props["ReverbEnable"] == "0"


def test_round_trip_preserves_settings():
    settings = PerformanceSettings()
    tg = settings.tone_generators[2]
    tg.midi_channel = 9
    tg.voice_number = 31
    tg.detune = -42
    tg.voice_data = "01 02 03"
    tg.mono_mode = True
    tg.compressor_enable = False
    settings.tone_generators[5].midi_channel = OMNI_MODE
    settings.master_eq_low = -6
    settings.limiter_ratio = 7
    settings.limiter_hp_filter_enable = True

    restored = PerformanceSettings.from_properties(settings.to_properties())
    assert restored == settings


def test_invalid_tone_generator_count_raises():
    with pytest.raises(ValueError):
        PerformanceSettings().to_properties(ALL_TONE_GENERATORS + 1)
    with pytest.raises(ValueError):
        PerformanceSettings().to_properties(-1)


def test_voice_data_filled():
    tg = ToneGeneratorSettings()
    assert tg.voice_data_filled is False
    tg.voice_data = "7F"
    assert tg.voice_data_filled is True


def test_voice_data_string_read_verbatim():
    settings = PerformanceSettings.from_properties({"VoiceData1": "0A 0B"})
    assert settings.tone_generators[0].voice_data == "0A 0B"
    assert settings.tone_generators[1].voice_data == ""