"""
Tests for configuration loading and config-driven construction.
"""
import pytest
import yaml

from dartscore.core import Config, atomic_write_yaml, build_board_geometry, load_yaml
from dartscore.game import (
    ClosePolicy,
    CountdownMode,
    CountUpMode,
    ScoringEngine,
    mode_from_config,
    policy_from_config,
)


def test_defaults():
    """Test default configuration."""
    config = Config()

    assert config.get("game", "mode") == "501"
    assert config.get("game", "close_policy") == "explicit"
    assert config.get("feed", "queue_size") == 0
    assert config.get("board", "double_outer_radius") == 170.0
    assert config.get("missing", "key", "fallback") == "fallback"


def test_defaults_not_shared():
    """Mutating one config leaves the defaults untouched."""
    first = Config()
    first.data["game"]["mode"] = "301"

    assert Config().get("game", "mode") == "501"


def test_yaml_overrides(tmp_path):
    """Values from YAML are merged over the defaults."""
    path = tmp_path / "game.yaml"
    path.write_text(
        "game:\n"
        "  mode: countup\n"
        "  rounds: 5\n"
        "board:\n"
        "  triple_inner_radius: 99.0\n",
        encoding="utf-8",
    )

    config = Config(path)

    assert config.get("game", "mode") == "countup"
    assert config.get("game", "rounds") == 5
    # Untouched keys keep their defaults
    assert config.get("game", "close_policy") == "explicit"
    assert config.get("board", "triple_outer_radius") == 115.0


def test_invalid_yaml_falls_back(tmp_path):
    """A broken file leaves the defaults in place."""
    path = tmp_path / "broken.yaml"
    path.write_text("game: [unclosed\n", encoding="utf-8")

    config = Config(path)

    assert config.get("game", "mode") == "501"


def test_missing_file_uses_defaults(tmp_path):
    config = Config(tmp_path / "nope.yaml")

    assert config.get("game", "rounds") == 8


def test_save_and_reload(tmp_path):
    """Saved configuration loads back unchanged."""
    config = Config()
    config.data["game"]["mode"] = "301"
    path = tmp_path / "out" / "saved.yaml"

    config.save(path)
    reloaded = Config(path)

    assert reloaded.data == config.data


def test_build_board_geometry():
    """Board overrides reach the geometry, unknown keys are ignored."""
    config = Config()
    config.data["board"]["double_inner_radius"] = 160.0
    config.data["board"]["wire_width"] = 1.2

    geometry = build_board_geometry(config)

    assert geometry.double_inner_radius == 160.0
    assert geometry.double_outer_radius == 170.0
    assert not hasattr(geometry, "wire_width")


def test_build_board_geometry_invalid():
    """Overrides are validated."""
    config = Config()
    config.data["board"]["outer_bull_radius"] = 500.0

    with pytest.raises(ValueError):
        build_board_geometry(config)


def test_mode_from_config():
    """Test mode selection from the game section."""
    config = Config()
    mode = mode_from_config(config)
    assert isinstance(mode, CountdownMode)
    assert mode.get_starting_score() == 501

    config.data["game"]["mode"] = "countup"
    config.data["game"]["rounds"] = 3
    mode = mode_from_config(config)
    assert isinstance(mode, CountUpMode)
    assert mode.rounds == 3

    config.data["game"]["mode"] = "countdown"
    config.data["game"]["starting_score"] = 170
    assert mode_from_config(config).get_starting_score() == 170


def test_policy_from_config():
    """Unknown policies fall back to explicit closing."""
    config = Config()
    assert policy_from_config(config) is ClosePolicy.EXPLICIT

    config.data["game"]["close_policy"] = "AUTO"
    assert policy_from_config(config) is ClosePolicy.AUTO

    config.data["game"]["close_policy"] = "sometimes"
    assert policy_from_config(config) is ClosePolicy.EXPLICIT


def test_engine_from_config():
    """Engine picks up mode, policy and board geometry."""
    config = Config()
    config.data["game"]["mode"] = "301"
    config.data["game"]["close_policy"] = "auto"
    config.data["board"]["triple_inner_radius"] = 99.0

    engine = ScoringEngine.from_config(config)

    assert engine.game_mode.get_starting_score() == 301
    assert engine.close_policy is ClosePolicy.AUTO
    assert engine.coordinate_codec.decode(100, 0).points == 60


def test_engine_from_config_invalid_mode():
    config = Config()
    config.data["game"]["mode"] = "cricket"

    with pytest.raises(ValueError):
        ScoringEngine.from_config(config)


def test_load_yaml_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_yaml(tmp_path / "missing.yaml")


def test_load_yaml_empty(tmp_path):
    """An empty file loads as an empty dict."""
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    assert load_yaml(path) == {}


def test_atomic_write_yaml(tmp_path):
    """Writes the file and leaves no temp files behind."""
    path = tmp_path / "data.yaml"

    atomic_write_yaml(path, {"game": {"mode": "301"}})

    with open(path, encoding="utf-8") as f:
        assert yaml.safe_load(f) == {"game": {"mode": "301"}}
    assert [p.name for p in tmp_path.iterdir()] == ["data.yaml"]


def test_empty_section_keeps_defaults(tmp_path):
    """A section with no value leaves its defaults in place."""
    path = tmp_path / "game.yaml"
    path.write_text("game:\nfeed:\n  queue_size: 4\n", encoding="utf-8")

    config = Config(path)

    assert config.get("game", "mode") == "501"
    assert config.get("feed", "queue_size") == 4
    assert ScoringEngine.from_config(config).game_mode.get_starting_score() == 501


def test_non_mapping_section_keeps_defaults(tmp_path):
    path = tmp_path / "game.yaml"
    path.write_text("game: 301\nboard: [1, 2]\n", encoding="utf-8")

    config = Config(path)

    assert config.get("game", "mode") == "501"
    assert config.get("board", "double_outer_radius") == 170.0


def test_non_mapping_file_falls_back(tmp_path):
    """A file whose top level is a list is rejected as a whole."""
    path = tmp_path / "game.yaml"
    path.write_text("- game\n- board\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_yaml(path)

    assert Config(path).get("game", "mode") == "501"
