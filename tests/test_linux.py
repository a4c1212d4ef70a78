import errno
import io
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from protocol_handler import linux
from protocol_handler.errors import EnvError, ErrorKind, IoError, ParseError


class _KeepOpenStringIO(io.StringIO):
    def close(self) -> None:
        pass


class _FailingWriteStringIO(_KeepOpenStringIO):
    def write(self, s: str) -> int:
        raise OSError(errno.ENOSPC, "No space left on device")


class LinuxRegistrationTests(unittest.TestCase):
    """Register/unregister against a temporary HOME."""

    temp_dir: tempfile.TemporaryDirectory[str]
    environ: dict[str, str]
    applications_dir: Path

    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.environ = {"HOME": self.temp_dir.name}
        self.applications_dir = Path(self.temp_dir.name) / ".local" / "share" / "applications"
        self.applications_dir.mkdir(parents=True)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _register(self, name: str = "app", scheme: str = "app") -> Path:
        return linux.register_protocol_handler(
            name,
            scheme,
            environ=self.environ,
            executable="/usr/bin/app",
        )

    def test_desktop_entry_path_uses_home(self) -> None:
        path = linux.desktop_entry_path("myapp", {"HOME": "/home/user"})
        self.assertEqual(path, Path("/home/user/.local/share/applications/myapp.desktop"))

    def test_missing_home_raises_env_error(self) -> None:
        opener = mock.Mock()
        with self.assertRaises(EnvError) as ctx:
            linux.register_protocol_handler("app", "app", environ={}, opener=opener)
        self.assertIs(ctx.exception.kind, ErrorKind.ENV)
        self.assertEqual(ctx.exception.variable, "HOME")
        opener.assert_not_called()

    def test_register_creates_entry(self) -> None:
        path = self._register()

        self.assertEqual(path, self.applications_dir / "app.desktop")
        self.assertEqual(
            path.read_text(encoding="utf-8"),
            "[Desktop Entry]\nExec=/usr/bin/app %u\nMimeType=x-scheme-handler/app",
        )

    def test_register_logs_through_module_logger(self) -> None:
        with self.assertLogs("protocol_handler.linux", level="INFO") as logs:
            self._register(scheme="myapp")
        self.assertIn("x-scheme-handler/myapp", logs.output[-1])

    def test_register_twice_is_idempotent(self) -> None:
        path = self._register()
        first = path.read_text(encoding="utf-8")
        self._register()
        self.assertEqual(path.read_text(encoding="utf-8"), first)

    def test_register_preserves_existing_fields(self) -> None:
        path = self.applications_dir / "app.desktop"
        path.write_text(
            "[Desktop Entry]\nName=App\nExec=/opt/app/run %U\nMimeType=text/plain;x-scheme-handler/old;\n"
            "Type=Application\n",
            encoding="utf-8",
        )

        self._register(scheme="new")

        self.assertEqual(
            path.read_text(encoding="utf-8"),
            "[Desktop Entry]\nName=App\nExec=/opt/app/run %U\n"
            "MimeType=text/plain;x-scheme-handler/new\nType=Application",
        )

    def test_register_shrinks_file_to_new_content(self) -> None:
        path = self.applications_dir / "app.desktop"
        path.write_text(
            "[Desktop Entry]\nExec=app\nMimeType=x-scheme-handler/a-very-long-scheme-name;text/plain",
            encoding="utf-8",
        )

        self._register(scheme="b")

        self.assertEqual(
            path.read_text(encoding="utf-8"),
            "[Desktop Entry]\nExec=app\nMimeType=x-scheme-handler/b;text/plain",
        )

    def test_register_leaves_unparsable_file_untouched(self) -> None:
        path = self.applications_dir / "app.desktop"
        original = "# comment\n[Desktop Entry]\nName=App\n"
        path.write_text(original, encoding="utf-8")

        with self.assertRaises(ParseError):
            self._register()
        self.assertEqual(path.read_text(encoding="utf-8"), original)

    def test_register_without_applications_dir_raises_io_error(self) -> None:
        environ = {"HOME": str(Path(self.temp_dir.name) / "missing")}
        with self.assertRaises(IoError) as ctx:
            linux.register_protocol_handler("app", "app", environ=environ, executable="app")
        self.assertIs(ctx.exception.kind, ErrorKind.IO)
        self.assertIsInstance(ctx.exception.__cause__, FileNotFoundError)

    def test_register_uses_configured_exec_command(self) -> None:
        config_path = Path(self.temp_dir.name) / "config"
        config_path.write_text("[protocol_handler]\nexec_command = /opt/app/bin/app\n", encoding="utf-8")

        with mock.patch.dict(os.environ, {"PROTOCOL_HANDLER_CONFIG": str(config_path)}):
            path = linux.register_protocol_handler("app", "app", environ=self.environ)

        self.assertIn("Exec=/opt/app/bin/app %u\n", path.read_text(encoding="utf-8"))

    def test_unregister_removes_handler_and_saves(self) -> None:
        path = self.applications_dir / "app.desktop"
        path.write_text(
            "[Desktop Entry]\nName=App\nMimeType=x-scheme-handler/app;application/cdf",
            encoding="utf-8",
        )

        linux.unregister_protocol_handler("app", environ=self.environ)

        self.assertEqual(
            path.read_text(encoding="utf-8"),
            "[Desktop Entry]\nName=App\nMimeType=application/cdf",
        )

    def test_unregister_after_register_drops_mime_type(self) -> None:
        path = self._register()
        linux.unregister_protocol_handler("app", environ=self.environ)
        self.assertEqual(path.read_text(encoding="utf-8"), "[Desktop Entry]\nExec=/usr/bin/app %u")

    def test_read_protocol_handler(self) -> None:
        self.assertIsNone(linux.read_protocol_handler("app", environ=self.environ))
        self._register(scheme="myapp")
        self.assertEqual(linux.read_protocol_handler("app", environ=self.environ), "myapp")
        linux.unregister_protocol_handler("app", environ=self.environ)
        self.assertIsNone(linux.read_protocol_handler("app", environ=self.environ))

    def test_injected_opener_receives_resolved_path(self) -> None:
        handle = _KeepOpenStringIO("[Desktop Entry]\nName=App")
        opener = mock.Mock(return_value=handle)

        linux.register_protocol_handler(
            "app",
            "app",
            environ={"HOME": "/nonexistent"},
            executable="app",
            opener=opener,
        )

        opener.assert_called_once_with(Path("/nonexistent/.local/share/applications/app.desktop"))
        self.assertEqual(
            handle.getvalue(),
            "[Desktop Entry]\nName=App\nExec=app %u\nMimeType=x-scheme-handler/app",
        )

    def test_register_rejects_non_utf8_content(self) -> None:
        path = self.applications_dir / "app.desktop"
        original = b"[Desktop Entry]\nName=\xff\xfe"
        path.write_bytes(original)

        with self.assertRaises(IoError) as ctx:
            self._register()
        self.assertIs(ctx.exception.kind, ErrorKind.IO)
        self.assertIsInstance(ctx.exception.__cause__, UnicodeDecodeError)
        self.assertEqual(path.read_bytes(), original)

        with self.assertRaises(IoError):
            linux.read_protocol_handler("app", environ=self.environ)

    def test_register_rejects_exec_command_with_separator(self) -> None:
        path = self.applications_dir / "app.desktop"
        path.write_text("[Desktop Entry]\nName=App", encoding="utf-8")

        with self.assertRaises(ParseError):
            linux.register_protocol_handler(
                "app",
                "app",
                environ=self.environ,
                executable="env A=1 app",
            )
        self.assertEqual(path.read_text(encoding="utf-8"), "[Desktop Entry]\nName=App")

    def test_register_rejects_scheme_with_separator(self) -> None:
        path = self._register()
        before = path.read_text(encoding="utf-8")

        with self.assertRaises(ParseError):
            self._register(scheme="a=b")
        with self.assertRaises(ParseError):
            self._register(scheme="a\nb")
        self.assertEqual(path.read_text(encoding="utf-8"), before)

        linux.unregister_protocol_handler("app", environ=self.environ)
        self.assertIsNone(linux.read_protocol_handler("app", environ=self.environ))

    def test_write_failure_raises_io_error(self) -> None:
        handle = _FailingWriteStringIO("[Desktop Entry]\nName=App")
        opener = mock.Mock(return_value=handle)

        with self.assertRaises(IoError) as ctx:
            linux.unregister_protocol_handler("app", environ=self.environ, opener=opener)
        self.assertIs(ctx.exception.kind, ErrorKind.IO)
        self.assertIsInstance(ctx.exception.__cause__, OSError)
        self.assertEqual(ctx.exception.path, self.applications_dir / "app.desktop")

    def test_read_protocol_handler_on_unreadable_path_raises_io_error(self) -> None:
        (self.applications_dir / "app.desktop").mkdir()

        with self.assertRaises(IoError) as ctx:
            linux.read_protocol_handler("app", environ=self.environ)
        self.assertIsInstance(ctx.exception.__cause__, IsADirectoryError)


if __name__ == "__main__":
    unittest.main()
