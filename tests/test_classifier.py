"""Tests for umbrella_mailbox.classifier."""

from __future__ import annotations

from umbrella_mailbox.classifier import PartClassification, classify
from umbrella_mailbox.models import AttachmentInfo, BodyStructureNode

from tests.conftest import _container, _leaf


class TestClassifyEmpty:
    def test_none_root(self):
        assert classify(None, True, True, True) == PartClassification()

    def test_multipart_without_matches(self):
        root = _container("", [_leaf("1", "image/png"), _leaf("2", "application/json")])
        result = classify(root, True, True, True)
        assert result.attachments == []
        assert result.text_part_id is None
        assert result.html_part_id is None


class TestClassifySinglePart:
    def test_plain_text(self):
        result = classify(_leaf("TEXT", "text/plain"), True, True, True)
        assert result.text_part_id == "TEXT"
        assert result.html_part_id is None
        assert result.attachments == []

    def test_html(self):
        result = classify(_leaf("TEXT", "text/html"), True, True, True)
        assert result.html_part_id == "TEXT"
        assert result.text_part_id is None

    def test_non_text_single_part(self):
        result = classify(
            _leaf("TEXT", "application/pdf", disposition="attachment", filename="a.pdf"),
            True,
            True,
            True,
        )
        assert result == PartClassification()


class TestClassifyMultipart:
    def test_text_html_and_attachment(self):
        root = _container(
            "",
            [
                _leaf("1", "text/plain", size=10),
                _leaf("2", "text/html", size=20),
                _leaf(
                    "3",
                    "application/pdf",
                    size=500,
                    encoding="base64",
                    disposition="attachment",
                    filename="a.pdf",
                ),
            ],
        )
        result = classify(root, True, True, True)
        assert result.text_part_id == "1"
        assert result.html_part_id == "2"
        assert result.attachments == [
            AttachmentInfo(
                part_id="3",
                filename="a.pdf",
                mime_type="application/pdf",
                encoding="base64",
                size=500,
            )
        ]

    def test_nested_alternative(self, mixed_structure: BodyStructureNode):
        result = classify(mixed_structure, True, True, True)
        assert result.text_part_id == "1.1"
        assert result.html_part_id == "1.2"
        assert [a.filename for a in result.attachments] == ["report.pdf"]

    def test_text_attachment_is_not_body(self):
        root = _container(
            "",
            [
                _leaf("1", "text/plain"),
                _leaf("2", "text/plain", disposition="attachment", filename="notes.txt"),
            ],
        )
        result = classify(root, True, True, True)
        assert result.text_part_id == "1"
        assert [a.part_id for a in result.attachments] == ["2"]

    def test_inline_text_counts_as_body(self):
        root = _container("", [_leaf("1", "text/html", disposition="inline")])
        assert classify(root, True, True, True).html_part_id == "1"

    def test_last_text_match_wins(self):
        root = _container(
            "",
            [
                _leaf("1", "text/plain"),
                _container("2", [_leaf("2.1", "text/plain"), _leaf("2.2", "text/html")]),
                _leaf("3", "text/html"),
            ],
        )
        result = classify(root, True, True, True)
        assert result.text_part_id == "2.1"
        assert result.html_part_id == "3"

    def test_attachments_in_traversal_order(self):
        root = _container(
            "",
            [
                _leaf("1", "application/zip", disposition="attachment", filename="b.zip"),
                _container(
                    "2",
                    [_leaf("2.1", "image/png", disposition="attachment", filename="a.png")],
                ),
                _leaf("3", "text/csv", disposition="attachment", filename="c.csv"),
            ],
        )
        filenames = [a.filename for a in classify(root, True, True, True).attachments]
        assert filenames == ["b.zip", "a.png", "c.csv"]

    def test_sizeless_attachment_ignored(self):
        root = _container(
            "",
            [_leaf("1", "application/pdf", size=None, disposition="attachment", filename="x.pdf")],
        )
        assert classify(root, True, True, True).attachments == []


class TestClassifyPurity:
    def test_idempotent(self, mixed_structure: BodyStructureNode):
        first = classify(mixed_structure, True, True, False)
        second = classify(mixed_structure, True, True, False)
        assert first == second

    def test_flags_do_not_change_result(self, mixed_structure: BodyStructureNode):
        assert classify(mixed_structure, False, False, False) == classify(
            mixed_structure, True, True, True
        )
