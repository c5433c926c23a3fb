import re
from pathlib import Path

PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


def test_desilofhe_pinned_to_1x_api():
    # EngineContext passes use_bootstrap=, which desilofhe 2.x renamed
    text = PYPROJECT.read_text(encoding="utf-8")
    match = re.search(r'"desilofhe([^"]*)"', text)
    assert match is not None
    assert "<2" in match.group(1)
