"""Tests for the circuit bonus table."""

from pathlib import Path

import pytest

from apex.prediction.bonuses import (
    BonusTable,
    CircuitBonus,
    default_bonus_table,
    load_bonus_table,
)


class TestBonusTable:
    def test_default_table(self):
        table = default_bonus_table()
        assert table.lookup("verstappen", "zandvoort") == (1.5, 0.0)
        assert table.lookup("leclerc", "monza") == (1.0, 0.0)
        assert table.lookup("hamilton", "monza") == (1.0, 0.0)

    def test_absent_pair_is_zero(self):
        table = default_bonus_table()
        assert table.lookup("verstappen", "monza") == (0.0, 0.0)
        assert table.lookup("nobody", "nowhere") == (0.0, 0.0)

    def test_lookup_is_case_insensitive(self):
        table = BonusTable([CircuitBonus("norris", "silverstone", historical=1.0)])
        assert table.lookup("Norris", "SILVERSTONE") == (1.0, 0.0)

    def test_entries_for_same_pair_are_summed(self):
        table = BonusTable([
            CircuitBonus("norris", "silverstone", historical=1.0),
            CircuitBonus("norris", "silverstone", historical=0.5, form=0.25),
        ])
        assert table.lookup("norris", "silverstone") == (1.5, 0.25)
        assert len(table) == 2

    def test_empty_table(self):
        assert len(BonusTable()) == 0
        assert BonusTable().lookup("verstappen", "zandvoort") == (0.0, 0.0)


class TestLoadBonusTable:
    def test_loads_yaml(self, tmp_path: Path):
        path = tmp_path / "bonuses.yaml"
        path.write_text(
            "bonuses:\n"
            "  - driver: Piastri\n"
            "    track: melbourne\n"
            "    historical: 1.2\n"
            "    form: 0.3\n"
            "  - driver: russell\n"
            "    track: montreal\n"
            "    historical: 1\n",
            encoding="utf-8",
        )
        table = load_bonus_table(path)
        assert len(table) == 2
        assert table.lookup("piastri", "melbourne") == (1.2, 0.3)
        assert table.lookup("russell", "montreal") == (1.0, 0.0)

    def test_empty_file_gives_empty_table(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert len(load_bonus_table(path)) == 0

    def test_invalid_yaml_raises(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("bonuses: [unclosed", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid bonus table"):
            load_bonus_table(path)

    def test_missing_track_raises(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("bonuses:\n  - driver: norris\n", encoding="utf-8")
        with pytest.raises(ValueError, match="entry 0"):
            load_bonus_table(path)

    def test_non_mapping_root_raises(self, tmp_path: Path):
        path = tmp_path / "list.yaml"
        path.write_text("- driver: norris\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_bonus_table(path)
