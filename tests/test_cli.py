"""CLI smoke tests through typer's CliRunner."""

import pytest
from typer.testing import CliRunner

from eqmind.agent.engine import MemoryEngine
from eqmind.cli.commands import app
from eqmind.memory.store import RecordStore
from eqmind.memory.vector_store import SqliteVectorIndex

runner = CliRunner()


@pytest.fixture(autouse=True)
def local_engine(tmp_path, monkeypatch, embedder):
    """Point the CLI at a temp database and a fake embedder."""
    db_path = tmp_path / "cli.db"
    monkeypatch.setattr("eqmind.config.loader.get_config_path", lambda: tmp_path / "config.json")

    def from_config(cls, config, entity_source=None):
        return cls(
            store=RecordStore(db_path),
            embedder=embedder,
            index=SqliteVectorIndex(tmp_path / "cli-vectors.db"),
            entity_source=entity_source,
            config=config,
        )

    monkeypatch.setattr(MemoryEngine, "from_config", classmethod(from_config))
    return db_path


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "eqmind v" in result.stdout


def test_feel_and_surface():
    result = runner.invoke(app, ["feel", "happy", "Long walk by the river after work"])
    assert result.exit_code == 0
    assert "Stored #1 (happy)" in result.stdout

    result = runner.invoke(app, ["surface"])
    assert result.exit_code == 0
    assert "happy" in result.stdout


def test_feel_new_emotion_hint():
    result = runner.invoke(app, ["feel", "wistful", "An old song on the radio"])
    assert result.exit_code == 0
    assert "New emotion 'wistful'" in result.stdout


def test_feel_invalid_intensity_exits_1():
    result = runner.invoke(app, ["feel", "happy", "fine", "--intensity", "loud"])
    assert result.exit_code == 1
    assert "Error" in result.stdout


def test_sit_resolve_cycle():
    runner.invoke(app, ["feel", "hurt", "They forgot my birthday"])

    result = runner.invoke(app, ["sit", "--id", "1", "--note", "still stings"])
    assert result.exit_code == 0
    assert "charge now warm" in result.stdout

    result = runner.invoke(app, ["resolve", "--match", "birthday"])
    assert result.exit_code == 0
    assert "metabolized" in result.stdout

    result = runner.invoke(app, ["resolve", "--id", "1"])
    assert result.exit_code == 1
    assert "already metabolized" in result.stdout


def test_sit_missing_record():
    result = runner.invoke(app, ["sit", "--id", "99"])
    assert result.exit_code == 1


def test_decay():
    runner.invoke(app, ["feel", "happy", "Long walk by the river after work"])
    result = runner.invoke(app, ["decay"])
    assert result.exit_code == 0
    assert "Memory decay applied" in result.stdout


def test_type_before_and_after_recalculate():
    result = runner.invoke(app, ["type"])
    assert result.exit_code == 0
    assert "No type yet" in result.stdout

    runner.invoke(app, ["feel", "peaceful", "Quiet tea on the balcony"])
    result = runner.invoke(app, ["type", "--recalculate"])
    assert result.exit_code == 0
    assert "INFP" in result.stdout


def test_spark_and_landscape():
    runner.invoke(app, ["feel", "curious", "They seemed tired after the call"])
    runner.invoke(app, ["feel", "proud", "I held back and listened"])

    result = runner.invoke(app, ["spark", "-n", "2"])
    assert result.exit_code == 0
    assert "Entropy" in result.stdout

    result = runner.invoke(app, ["landscape"])
    assert result.exit_code == 0
    assert "2 feelings" in result.stdout


def test_spark_invalid_weight_exits_1():
    result = runner.invoke(app, ["spark", "--weight", "enormous"])
    assert result.exit_code == 1
    assert "weight_bias must be" in result.stdout


def test_spark_empty():
    result = runner.invoke(app, ["spark"])
    assert result.exit_code == 0
    assert "No feelings stored yet" in result.stdout


def test_search_and_health():
    runner.invoke(app, ["feel", "sad", "Missing the old house on the hill"])

    result = runner.invoke(app, ["search", "old house"])
    assert result.exit_code == 0
    assert "sad" in result.stdout

    result = runner.invoke(app, ["health"])
    assert result.exit_code == 0
    assert "Feelings: 1" in result.stdout


def test_shadows_empty():
    result = runner.invoke(app, ["shadows"])
    assert result.exit_code == 0
    assert "No shadow moments" in result.stdout


def test_vocab_add_calibrate_list():
    result = runner.invoke(app, ["vocab", "add", "giddy", "--e-i=-10", "--j-p=15"])
    assert result.exit_code == 0
    assert "Added 'giddy'" in result.stdout

    result = runner.invoke(app, ["vocab", "add", "giddy"])
    assert result.exit_code == 1
    assert "already in the vocabulary" in result.stdout

    result = runner.invoke(app, ["vocab", "calibrate", "giddy", "--t-f", "5"])
    assert result.exit_code == 0
    assert "(-10, 0, 5, 15)" in result.stdout

    result = runner.invoke(app, ["vocab", "calibrate", "nonexistent", "--t-f", "5"])
    assert result.exit_code == 1

    result = runner.invoke(app, ["vocab", "list", "-n", "50"])
    assert result.exit_code == 0
    assert "giddy" in result.stdout
