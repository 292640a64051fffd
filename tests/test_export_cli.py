import contextlib
import io
import json
import os
import re
import subprocess
import sys
import tempfile
import unittest
import zipfile
from pathlib import Path

from chatmd.domain.errors import NodeRenderError
from chatmd.domain.export import convert_archive

REPO_ROOT = Path(__file__).resolve().parents[1]
CHATMD = REPO_ROOT / "chatmd.py"

CREATE = 1700000000
UPDATE = 1700003600


def _conv(cid: str, title: str, user_text: str, assistant_text: str):
    return {
        "conversation_id": cid,
        "title": title,
        "create_time": CREATE,
        "update_time": UPDATE,
        "mapping": {
            "client-created-root": {"id": "client-created-root", "children": ["u1"]},
            "u1": {
                "id": "u1",
                "children": ["a1"],
                "message": {
                    "author": {"role": "user"},
                    "content": {"content_type": "text", "parts": [user_text]},
                    "metadata": {},
                },
            },
            "a1": {
                "id": "a1",
                "children": [],
                "message": {
                    "author": {"role": "assistant"},
                    "content": {"content_type": "text", "parts": [assistant_text]},
                    "metadata": {"model_slug": "gpt-4o"},
                },
            },
        },
    }


class ExportBase(unittest.TestCase):
    def setUp(self):
        self.tempdir = tempfile.TemporaryDirectory()
        self.home = Path(self.tempdir.name)
        self.out = self.home / "out"
        self.out.mkdir()
        self.conversations = [
            _conv("conv-a", "Alpha: planning?", "Need a plan", "Draft plan"),
            _conv("conv-b", "Beta research", "Find sources", "Found https://example.com/a"),
        ]

    def tearDown(self):
        self.tempdir.cleanup()

    def run_chatmd(self, *args, env=None):
        cmd = [sys.executable, str(CHATMD), *args]
        run_env = os.environ.copy()
        run_env["CHATMD_FORCE_COLOR"] = "0"
        run_env.pop("CHATMD_OUTPUT_DIR", None)
        run_env.pop("CHATMD_DATE_SUBDIR", None)
        if env:
            run_env.update(env)
        return subprocess.run(
            cmd,
            text=True,
            capture_output=True,
            cwd=REPO_ROOT,
            env=run_env,
            check=False,
        )

    def write_json(self, payload, name="conversations.json") -> Path:
        path = self.home / name
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path


class TestConvertArchive(ExportBase):
    def test_one_document_per_conversation(self):
        written = convert_archive(self.conversations, self.out)
        self.assertEqual(
            sorted(p.name for p in written), ["Alpha planning.md", "Beta research.md"]
        )
        text = (self.out / "Beta research.md").read_text(encoding="utf-8")
        self.assertIn("source: https://chatgpt.com/c/conv-b\n", text)
        self.assertIn("[https://example.com/a](https://example.com/a)", text)

    def test_file_times_come_from_conversation(self):
        convert_archive(self.conversations[:1], str(self.out))
        st = (self.out / "Alpha planning.md").stat()
        self.assertAlmostEqual(st.st_mtime, UPDATE, places=3)
        self.assertAlmostEqual(st.st_atime, CREATE, places=3)

    def test_out_of_range_times_leave_front_matter_empty(self):
        conv = _conv("conv-far", "Far future", "a", "b")
        conv["create_time"] = 1e20
        conv["update_time"] = 1e20
        written = convert_archive([conv], self.out)
        text = written[0].read_text(encoding="utf-8")
        self.assertIn("create_time: \n", text)
        self.assertIn("update_time: \n", text)

    def test_title_collision_is_disambiguated_with_warning(self):
        convs = [
            _conv("id-1", "Same", "a", "b"),
            _conv("id-2", "Same", "c", "d"),
            _conv("id-3", "same", "e", "f"),
        ]
        err = io.StringIO()
        with contextlib.redirect_stderr(err):
            written = convert_archive(convs, self.out)
        self.assertEqual(
            [p.name for p in written], ["Same.md", "Same (id-2).md", "same (id-3).md"]
        )
        self.assertEqual(err.getvalue().count("WARNING:"), 2)
        self.assertIn("d\n", (self.out / "Same (id-2).md").read_text(encoding="utf-8"))

    def test_untitled_conversation_falls_back_to_id(self):
        written = convert_archive([_conv("conv-x", "???", "a", "b")], self.out)
        self.assertEqual(written[0].name, "conv-x.md")

    def test_input_shape_errors_write_nothing(self):
        with self.assertRaises(TypeError):
            convert_archive({"not": "a list"}, self.out)
        with self.assertRaises(TypeError):
            convert_archive(self.conversations, 42)
        self.assertEqual(list(self.out.iterdir()), [])

    def test_render_failure_propagates_with_node(self):
        broken = _conv("conv-z", "Broken", "a", "b")
        broken["mapping"]["a1"]["message"]["author"] = "oops"
        with self.assertRaises(NodeRenderError) as ctx:
            convert_archive([broken], self.out)
        self.assertIn("Node: ", str(ctx.exception))


class TestCli(ExportBase):
    def test_convert_json_into_explicit_dir(self):
        src = self.write_json(self.conversations)
        result = self.run_chatmd(str(src), str(self.out), "--no-date-subdir")
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        self.assertTrue((self.out / "Alpha planning.md").exists())
        self.assertTrue((self.out / "Beta research.md").exists())
        self.assertIn("Conversion complete: 2 file(s)", result.stdout)

    def test_explicit_convert_command_and_date_subdir(self):
        src = self.write_json(self.conversations)
        result = self.run_chatmd("convert", str(src), str(self.out))
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        subdirs = [p for p in self.out.iterdir() if p.is_dir()]
        self.assertEqual(len(subdirs), 1)
        self.assertRegex(subdirs[0].name, r"^\d{8}$")
        self.assertEqual(len(list(subdirs[0].glob("*.md"))), 2)

    def test_env_output_dir_and_date_subdir_toggle(self):
        src = self.write_json(self.conversations)
        result = self.run_chatmd(
            "--quiet",
            str(src),
            env={"CHATMD_OUTPUT_DIR": str(self.out), "CHATMD_DATE_SUBDIR": "0"},
        )
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        self.assertEqual(result.stdout, "")
        self.assertEqual(len(list(self.out.glob("*.md"))), 2)

    def test_directory_input_finds_conversations_json(self):
        export_dir = self.home / "export"
        export_dir.mkdir()
        (export_dir / "user.json").write_text("{}", encoding="utf-8")
        (export_dir / "conversations.json").write_text(
            json.dumps(self.conversations), encoding="utf-8"
        )
        result = self.run_chatmd(str(export_dir), str(self.out), "--no-date-subdir")
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        self.assertEqual(len(list(self.out.glob("*.md"))), 2)

    def test_zip_input_is_read_without_extracting(self):
        zpath = self.home / "export.zip"
        with zipfile.ZipFile(zpath, "w") as zf:
            zf.writestr("conversations.json", json.dumps(self.conversations))
            zf.writestr("chat.html", "<html></html>")
        result = self.run_chatmd(str(zpath), str(self.out), "--no-date-subdir")
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        self.assertEqual(len(list(self.out.glob("*.md"))), 2)
        self.assertFalse((self.home / "export").exists())

    def test_zip_with_unsafe_member_is_rejected(self):
        zpath = self.home / "unsafe.zip"
        with zipfile.ZipFile(zpath, "w") as zf:
            zf.writestr("../escape.txt", "bad")
            zf.writestr("conversations.json", json.dumps(self.conversations))
        result = self.run_chatmd(str(zpath), str(self.out), "--no-date-subdir")
        self.assertNotEqual(result.returncode, 0)
        self.assertIn("unsafe", result.stderr.lower())
        self.assertEqual(list(self.out.iterdir()), [])

    def test_zip_member_count_limit(self):
        zpath = self.home / "many.zip"
        with zipfile.ZipFile(zpath, "w") as zf:
            for i in range(3):
                zf.writestr(f"file_{i}.txt", "x")
        result = self.run_chatmd(
            str(zpath), str(self.out), env={"CHATMD_MAX_ZIP_MEMBERS": "2"}
        )
        self.assertNotEqual(result.returncode, 0)
        self.assertIn("member limit", result.stderr.lower())

    def test_non_array_json_is_rejected_before_writing(self):
        src = self.write_json({"conversations": []})
        result = self.run_chatmd(str(src), str(self.out), "--no-date-subdir")
        self.assertEqual(result.returncode, 1)
        self.assertIn("ERROR: Expected a JSON array", result.stderr)
        self.assertEqual(list(self.out.iterdir()), [])

    def test_invalid_json_reports_path(self):
        src = self.home / "broken.json"
        src.write_text("[{", encoding="utf-8")
        result = self.run_chatmd(str(src), str(self.out))
        self.assertEqual(result.returncode, 1)
        self.assertIn("Failed to parse JSON", result.stderr)
        self.assertIn(str(src.resolve()), result.stderr)

    def test_missing_input(self):
        result = self.run_chatmd(str(self.home / "nope.json"), str(self.out))
        self.assertEqual(result.returncode, 1)
        self.assertIn("not found", result.stderr)

    def test_no_arguments_prints_usage_and_fails(self):
        result = self.run_chatmd()
        self.assertEqual(result.returncode, 1)
        self.assertIn("usage:", result.stderr)

    def test_render_error_is_fatal_and_names_node(self):
        broken = _conv("conv-z", "Broken", "a", "b")
        broken["mapping"]["a1"]["message"]["author"] = "oops"
        src = self.write_json([broken])
        result = self.run_chatmd(str(src), str(self.out), "--no-date-subdir")
        self.assertEqual(result.returncode, 1)
        self.assertIn("Error converting to markdown", result.stderr)
        self.assertIn("Node: ", result.stderr)

    def test_human_dates(self):
        src = self.write_json(self.conversations[:1])
        result = self.run_chatmd(
            str(src), str(self.out), "--no-date-subdir", "--human-dates",
            env={"CHATMD_TZ": "UTC"},
        )
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        text = (self.out / "Alpha planning.md").read_text(encoding="utf-8")
        self.assertIn("create_time: Nov 14, 2023, 10:13 PM\n", text)
        self.assertIn("update_time: Nov 14, 2023, 11:13 PM\n", text)

    def test_ids_lists_conversations(self):
        src = self.write_json(self.conversations)
        result = self.run_chatmd("ids", str(src))
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        self.assertEqual(
            result.stdout.splitlines(),
            ["conv-a\tAlpha: planning?", "conv-b\tBeta research"],
        )

    def test_written_lines_are_plain_without_color(self):
        src = self.write_json(self.conversations[:1])
        result = self.run_chatmd(str(src), str(self.out), "--no-date-subdir")
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        self.assertIsNone(re.search(r"\x1b\[", result.stdout))
        self.assertIn("wrote ", result.stdout)
        self.assertIn("(Alpha: planning?)", result.stdout)


if __name__ == "__main__":
    unittest.main()
