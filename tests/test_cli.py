"""
Tests for the answer-engine command line.
"""

import json

import pytest

from answer_engine.cli import build_parser, main


class TestAnnotateCommand:
    def test_annotate_when_output_given_then_file_written(self, tmp_path, write_json,
                                                          sample_import_question):
        source = write_json("paper.json", sample_import_question)
        output = tmp_path / "out" / "annotated.json"

        exit_code = main(["annotate", str(source), "-o", str(output)])

        assert exit_code == 0
        doc = json.loads(output.read_text(encoding="utf-8"))
        assert doc["parts"][0]["answer_requirement"] == "any_3_from"

    def test_annotate_when_no_output_then_stdout(self, capsys, write_json, sample_import_question):
        source = write_json("paper.json", sample_import_question)

        exit_code = main(["annotate", str(source)])

        assert exit_code == 0
        doc = json.loads(capsys.readouterr().out)
        assert doc["answer_format"] == "not_applicable"

    def test_annotate_when_diagnostics_path_then_report_saved(self, tmp_path, write_json,
                                                              sample_import_question):
        source = write_json("paper.json", sample_import_question)
        report_path = tmp_path / "diagnostics.json"

        main(["annotate", str(source), "-o", str(tmp_path / "a.json"), "--diagnostics", str(report_path)])

        report = json.loads(report_path.read_text(encoding="utf-8"))
        assert report["sources"] == [str(source)]
        assert report["summary_by_type"] == {"conflicting_flags": 1}

    def test_annotate_when_config_given_then_applied(self, tmp_path, write_json):
        source = write_json("paper.json", {"question_number": "5", "question_description": "",
                                           "correct_answers": []})
        config = write_json("engine.json", {"default_format": "single_line"})
        output = tmp_path / "a.json"

        main(["annotate", str(source), "-o", str(output), "--config", str(config)])

        assert json.loads(output.read_text(encoding="utf-8"))["answer_format"] == "single_line"

    def test_annotate_when_invalid_document_then_exit_1(self, tmp_path, write_json):
        source = write_json("paper.json", {"question_number": "1", "correct_answers": None})

        assert main(["annotate", str(source), "-o", str(tmp_path / "a.json")]) == 1

    def test_annotate_when_missing_file_then_exit_1(self, tmp_path):
        assert main(["annotate", str(tmp_path / "missing.json")]) == 1

    def test_annotate_when_bad_config_then_exit_1(self, tmp_path, write_json, sample_import_question):
        source = write_json("paper.json", sample_import_question)
        config = write_json("engine.json", {"no_such_option": True})

        assert main(["annotate", str(source), "--config", str(config)]) == 1


    def test_annotate_when_config_field_wrong_type_then_exit_1(self, write_json, sample_import_question):
        source = write_json("paper.json", sample_import_question)
        config = write_json("engine.json", {"thresholds": [1.5, 4]})

        assert main(["annotate", str(source), "--config", str(config)]) == 1


class TestRevalidateCommand:
    def test_revalidate_when_all_valid_then_exit_0(self, tmp_path, write_json, sample_import_question):
        source = write_json("paper.json", sample_import_question)
        output = tmp_path / "results.jsonl"
        summary = tmp_path / "summary.json"

        exit_code = main(["revalidate", str(source), "-o", str(output), "--summary", str(summary), "-w", "1"])

        assert exit_code == 0
        assert len(output.read_text(encoding="utf-8").splitlines()) == 1
        assert json.loads(summary.read_text(encoding="utf-8"))["runs"] == 1

    def test_revalidate_when_one_file_bad_then_exit_1(self, tmp_path, write_json, sample_import_question):
        good = write_json("good.json", sample_import_question)
        output = tmp_path / "results.jsonl"

        exit_code = main(["revalidate", str(good), str(tmp_path / "missing.json"), "-o", str(output)])

        assert exit_code == 1
        assert len(output.read_text(encoding="utf-8").splitlines()) == 2


class TestParser:
    def test_parser_when_no_command_then_exits(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_parser_when_revalidate_without_output_then_exits(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["revalidate", "a.json"])
