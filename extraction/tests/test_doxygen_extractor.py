"""End-to-end tests for parse_doxygen_dir over a Doxygen XML fixture."""

import os
import shutil
import tempfile
import unittest
from pathlib import Path

from extraction.errors import DirectoryNotFoundError, InvalidStructureError, MalformedIndexError
from extraction.extractor import ParseOptions, filter_compounds, parse_doxygen_dir
from extraction.index import CompoundInfo

FIXTURE_DIR = Path(__file__).parent / "fixtures" / "doxygen_xml"

EXTRA_NAMESPACE_XML = """<?xml version='1.0' encoding='UTF-8' standalone='no'?>
<doxygen version="1.9.8">
  <compounddef id="namespaceextra" kind="namespace">
    <compoundname>extra</compoundname>
    <sectiondef kind="func">
      <memberdef kind="function" id="namespacens_1a7e40" prot="public">
        <type>int</type><name>helper</name><qualifiedname>extra::helper</qualifiedname>
      </memberdef>
      <memberdef kind="variable" id="namespaceextra_1av" prot="public">
        <type>int</type><name>counter</name>
      </memberdef>
      <memberdef kind="function" id="namespaceextra_1ag" prot="public">
        <type>void</type><name>tick</name><qualifiedname>extra::tick</qualifiedname>
      </memberdef>
    </sectiondef>
  </compounddef>
</doxygen>
"""


class FixtureDirMixin:
    """Copy the fixture into a temp dir so tests can add compounds."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.xml_dir = Path(self._tmp.name) / "xml"
        shutil.copytree(FIXTURE_DIR, self.xml_dir)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def add_compound(self, refid: str, kind: str, name: str, text: str = None) -> None:
        index_path = self.xml_dir / "index.xml"
        index_text = index_path.read_text(encoding="utf-8")
        entry = f'  <compound refid="{refid}" kind="{kind}"><name>{name}</name></compound>\n'
        index_path.write_text(
            index_text.replace("</doxygenindex>", entry + "</doxygenindex>"),
            encoding="utf-8",
        )
        if text is not None:
            (self.xml_dir / f"{refid}.xml").write_text(text, encoding="utf-8")


class TestParseFixture(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.result = parse_doxygen_dir(str(FIXTURE_DIR))
        cls.by_name = {e.name: e for e in cls.result.entities}

    def test_entities_in_index_order(self) -> None:
        self.assertEqual(
            [e.name for e in self.result.entities],
            ["Widget", "draw", "resize", "bounds", "ns", "helper", "Color", "main_loop"],
        )
        self.assertEqual(self.result.errors, ())

    def test_metadata(self) -> None:
        metadata = self.result.metadata
        self.assertEqual(metadata.doxygen_version, "1.9.8")
        self.assertEqual(metadata.total_files, 4)
        self.assertEqual(metadata.total_entities, 8)
        self.assertFalse(metadata.from_cache)
        self.assertGreaterEqual(metadata.parse_time_ms, 0.0)

    def test_class_entity(self) -> None:
        widget = self.by_name["Widget"]
        self.assertEqual(widget.kind, "class")
        self.assertEqual(widget.qualified_name, "ns::Widget")
        self.assertEqual(widget.namespace, "ns")
        self.assertEqual(widget.file, "include/widget.h")
        self.assertEqual(widget.line, 18)
        self.assertEqual(widget.brief_description, "A drawable UI element.")
        self.assertEqual(
            widget.detailed_description,
            "Elements are arranged in a tree and drawn back to front.",
        )
        self.assertTrue(widget.is_abstract)
        self.assertEqual(widget.base_classes[0].name, "ns::Drawable")
        self.assertEqual(
            [m.name for m in widget.members], ["draw", "resize", "bounds", "recompute"]
        )
        self.assertEqual(widget.members[3].visibility, "private")

    def test_members_become_methods(self) -> None:
        draw = self.by_name["draw"]
        self.assertEqual(draw.kind, "method")
        self.assertEqual(draw.parent_class, "ns::Widget")
        self.assertTrue(draw.is_const)
        self.assertTrue(draw.is_virtual)
        self.assertFalse(draw.is_pure_virtual)
        self.assertEqual(draw.parameters[0].type, "Canvas &")
        self.assertEqual(draw.parameters[0].description, "Target surface.")
        self.assertTrue(self.by_name["bounds"].is_pure_virtual)

    def test_visibility_and_return_type_defaults(self) -> None:
        resize = self.by_name["resize"]
        self.assertEqual(resize.visibility, "public")
        self.assertEqual(resize.return_type, "void")
        self.assertTrue(resize.is_inline)
        self.assertEqual(resize.parameters[1].default_value, "0")

    def test_private_members_excluded_by_default(self) -> None:
        self.assertNotIn("recompute", self.by_name)

    def test_namespace_member_is_free_function(self) -> None:
        helper = self.by_name["helper"]
        self.assertEqual(helper.kind, "function")
        self.assertEqual(helper.qualified_name, "ns::helper")
        self.assertEqual(helper.namespace, "ns")
        self.assertIsNone(helper.parent_class)
        self.assertIsNone(self.by_name["ns"].parent_namespace)

    def test_file_compound_contributes_members_only(self) -> None:
        self.assertNotIn("widget.h", self.by_name)
        main_loop = self.by_name["main_loop"]
        self.assertEqual(main_loop.kind, "function")
        self.assertIsNone(main_loop.namespace)

    def test_enum_explicit_values(self) -> None:
        color = self.by_name["Color"]
        self.assertTrue(color.is_strong)
        self.assertEqual(color.underlying_type, "uint32_t")
        self.assertEqual(
            [(v.name, v.value) for v in color.values],
            [("Red", "0xFF0000"), ("Green", None), ("Blue", None)],
        )

    def test_find_resolves_member_reference(self) -> None:
        ref = self.by_name["Widget"].members[0]
        self.assertIs(self.result.find(ref.id), self.by_name["draw"])
        self.assertIsNone(self.result.find("missing"))

    def test_to_dict_is_json_ready(self) -> None:
        payload = self.result.to_dict()
        self.assertIsInstance(payload["metadata"]["generated_at"], str)
        self.assertEqual(len(payload["entities"]), 8)


class TestParseOptions(unittest.TestCase):
    def test_include_private(self) -> None:
        result = parse_doxygen_dir(str(FIXTURE_DIR), ParseOptions(include_private=True))
        recompute = [e for e in result.entities if e.name == "recompute"]
        self.assertEqual(len(recompute), 1)
        self.assertEqual(recompute[0].visibility, "private")

    def test_entity_type_filter(self) -> None:
        result = parse_doxygen_dir(str(FIXTURE_DIR), ParseOptions(entity_types={"method"}))
        self.assertEqual(
            [e.name for e in result.entities], ["draw", "resize", "bounds"]
        )

    def test_descriptions_dropped(self) -> None:
        result = parse_doxygen_dir(
            str(FIXTURE_DIR), ParseOptions(include_descriptions=False)
        )
        self.assertTrue(all(e.brief_description is None for e in result.entities))
        self.assertTrue(all(e.detailed_description is None for e in result.entities))

    def test_max_files(self) -> None:
        result = parse_doxygen_dir(str(FIXTURE_DIR), ParseOptions(max_files=1))
        self.assertEqual(
            [e.name for e in result.entities], ["Widget", "draw", "resize", "bounds"]
        )

    def test_filter_compounds_keeps_contributing_kinds(self) -> None:
        compounds = [
            CompoundInfo("c", "class", "A"),
            CompoundInfo("n", "namespace", "n"),
            CompoundInfo("f", "file", "a.h"),
            CompoundInfo("d", "dir", "src"),
        ]
        self.assertEqual(filter_compounds(compounds), compounds)
        self.assertEqual(
            [c.refid for c in filter_compounds(compounds, {"enum"})], ["n", "f"]
        )
        self.assertEqual([c.refid for c in filter_compounds(compounds, {"class"})], ["c"])


class TestRecoverableErrors(FixtureDirMixin, unittest.TestCase):
    def test_one_malformed_compound_among_valid_ones(self) -> None:
        self.add_compound("classbroken", "class", "Broken", "<doxygen><compounddef")

        result = parse_doxygen_dir(str(self.xml_dir))

        errors = [e for e in result.errors if e.severity == "error"]
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].file, "classbroken.xml")
        self.assertEqual(len(result.entities), 8)

    def test_missing_compound_document_is_recoverable(self) -> None:
        self.add_compound("classmissing", "class", "Missing")

        result = parse_doxygen_dir(str(self.xml_dir))

        self.assertEqual(len(result.errors), 1)
        self.assertEqual(result.errors[0].severity, "error")
        self.assertEqual(len(result.entities), 8)

    def test_compound_without_compounddef(self) -> None:
        self.add_compound("classempty", "class", "Empty", "<doxygen version='1.9.8'/>")
        result = parse_doxygen_dir(str(self.xml_dir))
        self.assertEqual([e.severity for e in result.errors], ["error"])
        self.assertIn("compounddef", result.errors[0].message)

    def test_unsupported_compound_kind(self) -> None:
        self.add_compound(
            "group__util",
            "group",
            "util",
            "<doxygen><compounddef id='group__util' kind='group'>"
            "<compoundname>util</compoundname></compounddef></doxygen>",
        )
        result = parse_doxygen_dir(str(self.xml_dir))
        self.assertEqual(len(result.errors), 1)
        self.assertIn("Unsupported entity kind: group", result.errors[0].message)

    def test_duplicates_and_unsupported_members_are_warnings(self) -> None:
        self.add_compound("namespaceextra", "namespace", "extra", EXTRA_NAMESPACE_XML)

        result = parse_doxygen_dir(str(self.xml_dir))

        self.assertTrue(all(e.severity == "warning" for e in result.errors))
        flagged = {e.entity_id for e in result.errors}
        self.assertEqual(flagged, {"namespacens_1a7e40", "namespaceextra_1av"})

        helpers = [e for e in result.entities if e.name == "helper"]
        self.assertEqual(len(helpers), 1)
        self.assertEqual(helpers[0].qualified_name, "ns::helper")
        self.assertIn("tick", [e.name for e in result.entities])
        self.assertIn("extra", [e.name for e in result.entities])


class TestFatalErrors(FixtureDirMixin, unittest.TestCase):
    def test_missing_directory(self) -> None:
        with self.assertRaises(DirectoryNotFoundError):
            parse_doxygen_dir(os.path.join(self._tmp.name, "absent"))

    def test_missing_index(self) -> None:
        (self.xml_dir / "index.xml").unlink()
        with self.assertRaises(InvalidStructureError):
            parse_doxygen_dir(str(self.xml_dir))

    def test_malformed_index(self) -> None:
        (self.xml_dir / "index.xml").write_text("<doxygenindex>", encoding="utf-8")
        with self.assertRaises(MalformedIndexError):
            parse_doxygen_dir(str(self.xml_dir))


if __name__ == "__main__":
    unittest.main()
