"""Tests for the StompboxClient facade."""

from unittest.mock import patch

import pytest

from stompbox_mcp.client import StompboxClient, base_plugin_type, validate_preset_name
from stompbox_mcp.config import Settings
from stompbox_mcp.errors import MalformedDirective, ProtocolError
from stompbox_mcp.protocol.parser import parse_preset_list
from stompbox_mcp.protocol.tokens import decode_line

CONFIG_DUMP = (
    'PluginConfig Boost Description "Clean boost"\r\n'
    "ParameterConfig Boost Gain Type Knob MinValue 0 MaxValue 10\r\n"
    "Ok\r\n"
    "EndConfig\r\n"
    "Ok\r\n"
)

FILE_CONFIG_DUMP = (
    "PluginConfig ConvoReverb\r\n"
    "ParameterConfig ConvoReverb Impulse Type File\r\n"
    "ParameterConfig ConvoReverb Mix Type Knob\r\n"
    'ParameterFileTree ConvoReverb Impulse Reverb "Small Room.wav" Hall.wav\r\n'
    "PluginConfig NAM\r\n"
    "ParameterConfig NAM Model Type File\r\n"
    "EndConfig\r\n"
    "Ok\r\n"
)

PROGRAM_DUMP = (
    "SetPreset Clean Lead\r\n"
    "SetChain Lead NoiseGate_2 Delay\r\n"
    "SetParam NoiseGate_2 Threshold -40\r\n"
    "EndProgram\r\n"
    "Ok\r\n"
)


@pytest.fixture
def client(device):
    return StompboxClient(device.host, device.port, read_timeout=2.0)


def test_dump_config_raw(client, device):
    device.reply(CONFIG_DUMP)
    assert client.dump_config() == CONFIG_DUMP
    assert device.commands == ["Dump Config\r\n"]


def test_dump_config_parsed(client, device):
    """The parser stops at the first Ok; payload before it is kept."""
    device.reply(CONFIG_DUMP)
    catalog = client.dump_config_parsed()
    assert catalog.plugins["Boost"].description == "Clean boost"
    assert catalog.plugins["Boost"].params["Gain"].max_value == 10.0


def test_dump_program_parsed(client, device):
    device.reply(PROGRAM_DUMP)
    state = client.dump_program_parsed()
    assert device.commands == ["Dump Program\r\n"]
    assert state.active_preset == "Clean Lead"
    assert state.chains["Lead"] == ["NoiseGate_2", "Delay"]
    assert state.params["NoiseGate_2"]["Threshold"] == "-40"


def test_dump_program_malformed(client, device):
    device.reply("SetPluginSlot Amp\r\nEndProgram\r\nOk\r\n")
    with pytest.raises(MalformedDirective):
        client.dump_program_parsed()


def test_current_preset(client, device):
    device.reply(PROGRAM_DUMP)
    assert client.current_preset() == "Clean Lead"


def test_error_line_wins_over_trailing_ok(client, device):
    """An Error line fails the call even though the stream ends in Ok."""
    device.reply("Error bad thing\r\nOk\r\n")
    with pytest.raises(ProtocolError) as exc:
        client.send_command("SetParam Boost Gain 5")
    assert exc.value.line == "Error bad thing"


def test_error_line_inside_dump(client, device):
    device.reply("SetPreset A\r\nError unknown plugin\r\nEndProgram\r\nOk\r\n")
    with pytest.raises(ProtocolError):
        client.dump_program()


def test_list_presets(client, device):
    device.reply("Presets\r\nClean\r\nLead\r\nOk\r\n")
    assert client.list_presets_parsed() == ["Clean", "Lead"]
    assert device.commands == ["List Presets\r\n"]


def test_list_presets_keeps_multi_word_names(client, device):
    device.reply("Presets\r\nMy Lead\r\nClean\r\nOk\r\n")
    assert client.list_presets_parsed() == ["My Lead", "Clean"]


def test_parse_preset_list_single_line():
    """Names on the header line split on whitespace; quotes group them."""
    assert parse_preset_list("Presets Clean Lead\r\nOk\r\n") == ["Clean", "Lead"]
    assert parse_preset_list('Presets Clean "My Lead"\r\nOk\r\n') == ["Clean", "My Lead"]
    assert parse_preset_list("Presets\r\nOk\r\n") == []


def test_set_param_quotes_value(client, device):
    device.reply("Ok\r\n")
    client.set_param("NAM_1", "Model", 'Fender "Twin"\t65.nam')
    sent = device.commands[0]
    assert sent.endswith("\r\n")
    assert decode_line(sent.strip()) == ["SetParam", "NAM_1", "Model", 'Fender "Twin"\t65.nam']


def test_set_param_plain(client, device):
    device.reply("Ok\r\n")
    client.set_param("Gain", "Level", "0.75")
    assert device.commands == ["SetParam Gain Level 0.75\r\n"]


def test_set_param_protocol_error(client, device):
    device.reply("Error no such param\r\nOk\r\n")
    with pytest.raises(ProtocolError):
        client.set_param("Boost", "Nope", "1")


def test_preset_commands(client, device):
    for _ in range(3):
        device.reply("Ok\r\n")
    client.load_preset("My Lead")
    client.save_preset("  My Lead  ")
    client.delete_preset("Old")
    assert device.commands == [
        'LoadPreset "My Lead"\r\n',
        'SavePreset "My Lead"\r\n',
        "DeletePreset Old\r\n",
    ]


def test_save_preset_rejects_bad_name(client, device):
    with pytest.raises(ValueError):
        client.save_preset("../etc/passwd")
    assert device.commands == []


def test_load_preset_rejects_empty_name(client, device):
    with pytest.raises(ValueError):
        client.load_preset("   ")
    assert device.commands == []


def test_load_preset_rejects_path_like_name(client, device):
    """Loading goes through the same name checks as saving and deleting."""
    with pytest.raises(ValueError):
        client.load_preset("../secrets")
    assert device.commands == []


def test_set_chain_and_release(client, device):
    device.reply("Ok\r\n")
    device.reply("Ok\r\n")
    client.set_chain("Lead", ["NoiseGate_2", " ", " Delay "])
    client.release_plugin("Delay")
    assert device.commands == [
        "SetChain Lead NoiseGate_2 Delay\r\n",
        "ReleasePlugin Delay\r\n",
    ]


def test_send_command_appends_crlf(client, device):
    device.reply("Ok\r\n")
    assert client.send_command("List Presets") == "Ok\r\n"
    assert device.commands == ["List Presets\r\n"]


def test_send_command_keeps_existing_crlf(client, device):
    device.reply("Ok\r\n")
    client.send_command("SetParam Boost Gain 5\r\n")
    assert device.commands == ["SetParam Boost Gain 5\r\n"]


def test_from_settings():
    settings = Settings(host="10.0.0.5", port=1234, dial_timeout=1.0, read_timeout=3.0, max_bytes=10)
    client = StompboxClient.from_settings(settings)
    assert client.address == ("10.0.0.5", 1234)
    assert "10.0.0.5" in repr(client)


def test_each_call_uses_matching_terminator():
    """Dumps wait for their phase marker; other commands stop at Ok."""
    client = StompboxClient("127.0.0.1", 1)
    with patch.object(client._channel, "exchange", return_value="Ok\r\n") as exchange:
        client.dump_config()
        client.dump_program()
        client.send_command("X")
    stops = [call.args[1].__name__ for call in exchange.call_args_list]
    assert stops == ["until_EndConfig_then_ok", "until_EndProgram_then_ok", "until_ok"]


@pytest.mark.parametrize("name", ["Clean", "My Lead", "Tone #2"])
def test_validate_preset_name_ok(name):
    assert validate_preset_name(f"  {name} ") == name


@pytest.mark.parametrize("name", ["", "   ", "a/b", "a\\b", "..", "x..y", "bad\x01", "x" * 201])
def test_validate_preset_name_rejects(name):
    with pytest.raises(ValueError):
        validate_preset_name(name)


@pytest.mark.parametrize(
    "instance, base",
    [("ConvoReverb_2", "ConvoReverb"), ("NAM", "NAM"), ("Amp_Mk_10", "Amp_Mk"), ("Delay_x", "Delay_x")],
)
def test_base_plugin_type(instance, base):
    assert base_plugin_type(instance) == base


def test_set_file_param_on_instance(client, device):
    """The type is looked up without the instance suffix; the instance is set."""
    device.reply(FILE_CONFIG_DUMP)
    device.reply("Ok\r\n")
    client.set_file_param("ConvoReverb_2", "Impulse", "Small Room.wav")
    assert device.commands == [
        "Dump Config\r\n",
        'SetParam ConvoReverb_2 Impulse "Small Room.wav"\r\n',
    ]


def test_set_file_param_without_tree_is_allowed(client, device):
    device.reply(FILE_CONFIG_DUMP)
    device.reply("Ok\r\n")
    client.set_file_param("NAM_1", "Model", "Plexi.nam")
    assert device.commands[1] == "SetParam NAM_1 Model Plexi.nam\r\n"


@pytest.mark.parametrize(
    "plugin, param, value, message",
    [
        ("Chorus_1", "Impulse", "Hall.wav", "unknown plugin"),
        ("ConvoReverb_1", "Decay", "Hall.wav", "unknown param"),
        ("ConvoReverb_1", "Mix", "Hall.wav", "not a File type"),
        ("ConvoReverb_1", "Impulse", "Missing.wav", "not present in file tree"),
    ],
)
def test_set_file_param_rejected(client, device, plugin, param, value, message):
    """Rejected choices never reach the device as a SetParam."""
    device.reply(FILE_CONFIG_DUMP)
    with pytest.raises(ValueError, match=message):
        client.set_file_param(plugin, param, value)
    assert device.commands == ["Dump Config\r\n"]


def test_set_file_param_requires_value(client, device):
    with pytest.raises(ValueError):
        client.set_file_param("NAM_1", "Model", "")
    assert device.commands == []


def test_set_plugin_enabled(client, device):
    device.reply("Ok\r\n")
    device.reply("Ok\r\n")
    client.set_plugin_enabled("Delay_1", True)
    client.set_plugin_enabled("Delay_1", False)
    assert device.commands == [
        "SetParam Delay_1 Enabled 1\r\n",
        "SetParam Delay_1 Enabled 0\r\n",
    ]
