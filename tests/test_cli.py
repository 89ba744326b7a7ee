"""CLI tests."""

import json

from cli import build_parser, main, parse_unit


class TestCLI:
    def test_parse_unit(self):
        unit = parse_unit("19.99:7.5", 0)
        assert str(unit.price) == "19.99"
        assert str(unit.cost) == "7.5"
        assert parse_unit("10", 1).cost == 0

    def test_calc_json(self, capsys):
        main(["calc", "--unit", "100:40", "--shipping", "5", "--handling", "2", "--condition", "No", "--json"])
        data = json.loads(capsys.readouterr().out)
        assert data["immediate_cash_outlay"] == "-107.00"
        assert data["net_impact"] == "-47.00"
        assert data["suggestion_tone"] == "critical"

    def test_calc_text(self, capsys):
        main(["calc", "--unit", "100:40", "--shipping", "abc"])
        out = capsys.readouterr().out
        assert "True Cost of Return:     $0.00" in out
        assert "Recovered" in out
        assert "[info]" in out

    def test_presets(self, capsys):
        main(["presets"])
        out = capsys.readouterr().out
        for name in ("7days", "30days", "quarter", "year"):
            assert name in out

    def test_no_command_prints_help(self, capsys):
        main([])
        assert "usage" in capsys.readouterr().out.lower()

    def test_parser_defaults(self):
        args = build_parser().parse_args(["calc"])
        assert args.condition == "Yes"
        assert args.reason == "Wrong Size"
        assert args.unit == []
