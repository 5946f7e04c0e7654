"""
Tests for document export and the end-of-run summary.
"""

import json
from pathlib import Path

from scriptdata.assembler.recipe import DocumentSpec, Ref, SummaryLine
from scriptdata.exporter.documents import DocumentExporter, ExportOptions, dump_document
from scriptdata.sandbox.runtime import EvaluatedBinding, SandboxCallable


BINDINGS = {
    "ITEMS": {
        "ore1": {"id": "ore1", "type": "ore", "name": "Ore"},
        "paste": {"id": "paste", "onUse": SandboxCallable("onUse")},
    },
    "QUESTS": {"a": {}, "b": {}},
    "BOARD_QUESTS": {"c": {}},
    "XP_TABLE": [0, 100, 250],
    "CFG": {"roomSize": 18},
}


def _exporter(output_dir, bindings=BINDINGS):
    return DocumentExporter(EvaluatedBinding(values=bindings), ExportOptions(output_dir=output_dir))


class TestDumpDocument:
    """dump_document(value)"""

    def test_sorted_and_indented(self):
        text = dump_document({"b": 1, "a": {"d": 2, "c": 3}})
        assert text == '{\n  "a": {\n    "c": 3,\n    "d": 2\n  },\n  "b": 1\n}\n'

    def test_non_ascii_kept(self):
        assert "Ω" in dump_document({"name": "Ωmega"})

    def test_null(self):
        assert dump_document(None) == "null\n"


class TestDocumentExporter:
    """Writing documents."""

    def test_write_document(self, output_dir):
        written = _exporter(output_dir).write_document("items.json", BINDINGS["ITEMS"])

        assert written.path == output_dir / "items.json"
        data = json.loads(written.path.read_text(encoding="utf-8"))
        assert data["ore1"] == {"id": "ore1", "type": "ore", "name": "Ore"}
        assert data["paste"]["onUse"] == "[function]"
        assert written.size_bytes == written.path.stat().st_size
        assert written.line_count == written.path.read_text(encoding="utf-8").count("\n")

    def test_report_line(self, output_dir):
        written = _exporter(output_dir).write_document("xp.json", [0] * 600)
        name, rest = written.report_line().split(" ", 1)
        assert name == "xp.json"
        assert rest.endswith(f"KB, {written.line_count} lines)")
        assert rest.startswith(f"({written.size_bytes / 1024:.1f} KB")

    def test_export_all_builds_groups(self, output_dir):
        documents = [
            DocumentSpec("items.json", Ref("ITEMS")),
            DocumentSpec("skills.json", {"xp_table": Ref("XP_TABLE"), "skill_defs": Ref("SKILL_DEFS")}),
            DocumentSpec("dungeons.json", {"config": {"roomSize": Ref("CFG.roomSize", 15),
                                                      "roomSpacing": Ref("CFG.roomSpacing", 22)}}),
        ]
        written = _exporter(output_dir).export_all(documents)

        assert [w.filename for w in written] == ["items.json", "skills.json", "dungeons.json"]
        skills = json.loads((output_dir / "skills.json").read_text(encoding="utf-8"))
        assert skills == {"skill_defs": None, "xp_table": [0, 100, 250]}
        dungeons = json.loads((output_dir / "dungeons.json").read_text(encoding="utf-8"))
        assert dungeons == {"config": {"roomSize": 18, "roomSpacing": 22}}

    def test_output_is_byte_stable(self, tmp_path):
        documents = [DocumentSpec("items.json", Ref("ITEMS"))]
        reordered = dict(BINDINGS, ITEMS=dict(reversed(list(BINDINGS["ITEMS"].items()))))

        _exporter(tmp_path / "one").export_all(documents)
        _exporter(tmp_path / "two", reordered).export_all(documents)

        assert (tmp_path / "one" / "items.json").read_bytes() == \
            (tmp_path / "two" / "items.json").read_bytes()

    def test_plain_mapping_bindings(self, output_dir):
        exporter = DocumentExporter({"A": [1]}, ExportOptions(output_dir=output_dir))
        assert exporter.build(DocumentSpec("a.json", Ref("A"))) == [1]

    def test_default_output_dir(self):
        assert ExportOptions().output_dir is None
        assert DocumentExporter({}).options.output_dir == Path("data")

    def test_custom_placeholder(self, output_dir):
        exporter = DocumentExporter(BINDINGS, ExportOptions(output_dir=output_dir, placeholder="<fn>"))
        doc = exporter.build(DocumentSpec("items.json", Ref("ITEMS")))
        assert doc["paste"]["onUse"] == "<fn>"


class TestSummary:
    """Counts for the end-of-run report."""

    def test_count(self, output_dir):
        exporter = _exporter(output_dir)
        assert exporter.count("ITEMS") == 2
        assert exporter.count("XP_TABLE") == 3
        assert exporter.count("CFG.roomSize") == 0
        assert exporter.count("MISSING") == 0

    def test_summary_lines(self, output_dir):
        lines = _exporter(output_dir).summary([
            SummaryLine("Items", ("ITEMS",)),
            SummaryLine("Quests", ("QUESTS", "BOARD_QUESTS"), "{0} main + {1} board"),
            SummaryLine("Pets", ("PET_DEFS",)),
        ])
        assert lines == [
            "Items:  2",
            "Quests: 2 main + 1 board",
            "Pets:   0",
        ]

    def test_empty_summary(self, output_dir):
        assert _exporter(output_dir).summary([]) == []
