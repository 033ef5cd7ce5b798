"""Tests for documentor.classifier."""

from __future__ import annotations

import pytest

from documentor.classifier import FileClassifier
from documentor.models import FileType


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("src/components/Button.test.tsx", FileType.TEST),
        ("tests/test_api.py", FileType.TEST),
        ("server/__tests__/users.js", FileType.TEST),
        ("src/styles/main.scss", FileType.STYLE),
        ("server/api/users.js", FileType.ROUTE),
        ("app/routes/orders.py", FileType.ROUTE),
        ("src/App.tsx", FileType.COMPONENT),
        ("src/components/helpers.js", FileType.COMPONENT),
        ("server/models/user.js", FileType.DATABASE),
        ("prisma/schema.prisma", FileType.DATABASE),
        ("src/services/billing.ts", FileType.SERVICE),
        ("src/lib/paymentService.js", FileType.SERVICE),
        ("package.json", FileType.CONFIG),
        ("Dockerfile", FileType.CONFIG),
        ("vite.config.js", FileType.CONFIG),
        (".env.example", FileType.CONFIG),
        ("docs/guide.md", FileType.OTHER),
    ],
)
def test_classify_by_path(path: str, expected: FileType) -> None:
    classifier = FileClassifier()

    assert classifier.classify(path) is expected


def test_first_matching_rule_wins() -> None:
    classifier = FileClassifier()

    # Under both a route directory and a test directory; the test rule comes first.
    assert classifier.classify("tests/api/users.js") is FileType.TEST
    assert classifier.explain("tests/api/users.js") == "test-path"
    # A .tsx file under routes/ is still a route module.
    assert classifier.classify("src/routes/index.tsx") is FileType.ROUTE


def test_content_rules_only_apply_to_undecided_scripts() -> None:
    classifier = FileClassifier()

    assert classifier.classify("server/db.js", "const { Pool } = require('pg');\n") is FileType.DATABASE
    assert (
        classifier.classify("server/index.js", "const app = express();\napp.get('/health', ok);\n")
        is FileType.ROUTE
    )
    assert classifier.classify("src/widget.js", "export default () => <div />;\n") is FileType.COMPONENT
    assert classifier.classify("server/index.js", "console.log('hi');\n") is FileType.OTHER
    assert classifier.explain("server/index.js", "console.log('hi');\n") is None


def test_content_is_loaded_lazily() -> None:
    classifier = FileClassifier()
    calls: list[str] = []

    def _load() -> str:
        calls.append("read")
        return "import sqlalchemy\n"

    assert classifier.classify("src/App.tsx", _load) is FileType.COMPONENT
    assert calls == []

    assert classifier.classify("app/store.py", _load) is FileType.DATABASE
    assert calls == ["read"]


def test_config_json_detected_from_keys() -> None:
    classifier = FileClassifier()

    assert classifier.classify("tsconfig.base.json", '{"compilerOptions": {}}') is FileType.CONFIG
    assert classifier.classify("data/users.json", '[{"id": 1}]') is FileType.OTHER
    assert classifier.classify("data/broken.json", "{not json") is FileType.OTHER
    assert classifier.classify("data/deep.json", "[" * 200000) is FileType.OTHER


def test_classification_is_deterministic() -> None:
    classifier = FileClassifier()
    content = "router.post('/orders', createOrder);\n"

    results = {classifier.classify("server/orders.js", content) for _ in range(5)}

    assert results == {FileType.ROUTE}
