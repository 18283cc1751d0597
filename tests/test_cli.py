"""
CLI tests using click's CliRunner against an in-memory reading-test PDF.
"""

from __future__ import annotations

import json

from click.testing import CliRunner

from ielts_reader.cli import cli
from ielts_reader.timer import CountdownTimer


class TestCli:

    def test_extract_prints_text(self, scenario_pdf):
        result = CliRunner().invoke(cli, ["extract", str(scenario_pdf)])
        assert result.exit_code == 0
        assert "Para one." in result.stdout
        assert "Questions 1-3" in result.stdout

    def test_parse_json_output(self, scenario_pdf):
        result = CliRunner().invoke(
            cli, ["parse", str(scenario_pdf), "--json-output"]
        )
        assert result.exit_code == 0

        data = json.loads(result.stdout)
        assert data["source"] == "heuristic"
        assert [q["type"] for q in data["questions"]] == [
            "true-false", "fill-blank", "multiple-choice",
        ]
        assert data["questions"][2]["options"][0] == {"value": "A", "text": "Paris"}
        assert data["metadata"]["total_pages"] == 2

    def test_parse_table_output(self, scenario_pdf):
        result = CliRunner().invoke(cli, ["parse", str(scenario_pdf)])
        assert result.exit_code == 0
        assert "Question Report" in result.stdout

    def test_unreadable_pdf_exits_with_error(self, tmp_path):
        bad = tmp_path / "broken.pdf"
        bad.write_bytes(b"not a pdf")
        result = CliRunner().invoke(cli, ["parse", str(bad)])
        assert result.exit_code == 1
        assert "Error:" in result.stdout

    def test_render_writes_page(self, scenario_pdf, tmp_path):
        out = tmp_path / "page.html"
        prefs = tmp_path / "prefs.json"
        prefs.write_text('{"darkMode": true}')

        result = CliRunner().invoke(cli, [
            "render", str(scenario_pdf),
            "--out", str(out), "--prefs-file", str(prefs),
        ])
        assert result.exit_code == 0

        page = out.read_text(encoding="utf-8")
        assert 'id="passage-text"' in page
        assert 'class="dark-mode"' in page
        assert 'data-question="3"' in page

    def test_take_scores_answers(self, scenario_pdf):
        result = CliRunner().invoke(
            cli, ["take", str(scenario_pdf), "--minutes", "5"],
            input="TRUE\n\nA\n",
        )
        assert result.exit_code == 0
        # Heuristic questions carry no answer key, so nothing scores
        assert "Score: 0/3" in result.stdout

    def test_take_rejects_unknown_choice(self, scenario_pdf):
        result = CliRunner().invoke(
            cli, ["take", str(scenario_pdf)],
            input="maybe\nnot given\n\nb\n",
        )
        assert result.exit_code == 0
        assert "Choose one of" in result.stdout

    def test_take_discards_answer_given_after_time_up(
        self, scenario_pdf, monkeypatch
    ):
        expiries = []

        class ManualTimer(CountdownTimer):
            def start(self, on_time_up=None):
                expiries.append(on_time_up)

        def answer_after_expiry(question):
            expiries[0]()
            return "TRUE"

        monkeypatch.setattr("ielts_reader.cli.CountdownTimer", ManualTimer)
        monkeypatch.setattr("ielts_reader.cli._ask", answer_after_expiry)

        result = CliRunner().invoke(cli, ["take", str(scenario_pdf)])
        assert result.exit_code == 0
        assert "Late answer discarded" in result.stdout
        assert "TRUE" not in result.stdout.split("Results", 1)[1]

    def test_dark_mode_toggle(self, tmp_path):
        prefs = tmp_path / "prefs.json"
        runner = CliRunner()

        result = runner.invoke(cli, ["dark-mode", "--prefs-file", str(prefs)])
        assert "Dark mode: off" in result.stdout

        result = runner.invoke(
            cli, ["dark-mode", "--toggle", "--prefs-file", str(prefs)]
        )
        assert result.exit_code == 0
        assert "Dark mode: on" in result.stdout
        assert json.loads(prefs.read_text()) == {"darkMode": True}
