import json

from storyguard.config import get_config, update_config
from storyguard.rules import VoiceSettings


def test_defaults_without_file(tmp_path) -> None:
    config = get_config(tmp_path)
    assert config["llm_connection"]["provider_format"] == "koboldcpp"
    assert config["voice"] == VoiceSettings().model_dump()


def test_defaults_are_not_shared(tmp_path) -> None:
    get_config(tmp_path)["voice"]["dna_threshold"] = 0.1
    assert get_config(tmp_path)["voice"]["dna_threshold"] == 0.7


def test_update_persists_and_ignores_unknown_keys(tmp_path) -> None:
    data_dir = tmp_path / "fresh"
    config = update_config(data_dir, {
        "llm_connection": {"provider_url": "http://localhost:5001", "bogus": 1},
        "voice": {"dna_threshold": 0.5},
        "unknown_section": {"x": 1},
    })
    assert config["llm_connection"]["provider_url"] == "http://localhost:5001"
    assert "bogus" not in config["llm_connection"]
    assert "unknown_section" not in config

    stored = json.loads((data_dir / "config.json").read_text())
    assert stored["voice"]["dna_threshold"] == 0.5
    assert get_config(data_dir)["voice"]["stutter_min_length"] == 30


def test_partial_stored_file(tmp_path) -> None:
    (tmp_path / "config.json").write_text(json.dumps({"voice": {"context_window": 80}}))
    config = get_config(tmp_path)
    assert config["voice"]["context_window"] == 80
    assert config["voice"]["dna_threshold"] == 0.7
    assert config["llm_connection"]["timeout"] == 120.0
