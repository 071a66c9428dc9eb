import json
import sys
from pathlib import Path

import pytest

# Add src to sys.path so we can import answer_engine
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())


# Common test fixtures
@pytest.fixture
def sample_import_question() -> dict:
    """A two-part imported question with a contextual stem."""
    return {
        "question_number": "1",
        "type": "complex",
        "question_description": "Penicillin is an antibiotic.",
        "marks": 6,
        "parts": [
            {
                "part": "a",
                "question_description": "Describe the variation in body length shown.",
                "marks": 3,
                "is_contextual_only": True,
                "marking_criteria": "Accept any 3 of the following 9 points",
                "correct_answers": [
                    {"answer": f"point {i}", "marks": 1, "context": {"type": "mark_point"}}
                    for i in range(1, 10)
                ],
            },
            {
                "part": "b",
                "question_description": "Answer the following.",
                "marks": 3,
                "subparts": [
                    {
                        "subpart": "i",
                        "question_description": "Name the organism.",
                        "marks": 1,
                        "correct_answers": [{"answer": "amoeba", "marks": 1}],
                    },
                    {
                        "subpart": "ii",
                        "question_description": "Calculate the magnification.",
                        "marks": 2,
                        "correct_answers": [
                            {"answer": "x400", "marks": 2, "alternative_id": 1},
                            {"answer": "400 times", "marks": 2, "alternative_id": 2},
                        ],
                    },
                ],
            },
        ],
    }


@pytest.fixture
def write_json(tmp_path: Path):
    """Write JSON data to a file under tmp_path and return its path."""
    def _write(name: str, data) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path
    return _write
