import json
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from tail_input.config import TailInputConfig, config_path, load_config, save_config
from tail_input.errors import ConfigError


class TestTailInputConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = TailInputConfig(path="/var/log/app.log")
        self.assertEqual(cfg.buffer_capacity, 100)
        self.assertEqual(cfg.max_lines_per_drain, 100)
        self.assertEqual(cfg.reopen_delay_s, 1.0)
        self.assertEqual(cfg.idle_sleep_s, 0.1)
        self.assertEqual(cfg.shrink_policy, "restart")
        self.assertEqual(cfg.error_policy, "fail")
        self.assertIs(cfg.validate(), cfg)

    def test_from_dict_coerces_loose_values(self) -> None:
        cfg = TailInputConfig.from_dict(
            {
                "path": "  /tmp/x.log ",
                "buffer_capacity": "3",
                "max_line_emit": 2.0,
                "reopen_delay_s": "0.25",
                "idle_sleep_s": "",
                "start_at_end": 1,
                "shrink_policy": "CLAMP",
            }
        )
        self.assertEqual(cfg.path, "/tmp/x.log")
        self.assertEqual(cfg.buffer_capacity, 3)
        self.assertEqual(cfg.max_lines_per_drain, 2)
        self.assertEqual(cfg.reopen_delay_s, 0.25)
        self.assertEqual(cfg.idle_sleep_s, 0.1)
        self.assertTrue(cfg.start_at_end)
        self.assertEqual(cfg.shrink_policy, "clamp")

    def test_validate_rejects_bad_values(self) -> None:
        bad = [
            {"path": ""},
            {"path": "   "},
            {"path": "x", "buffer_capacity": 0},
            {"path": "x", "max_lines_per_drain": -1},
            {"path": "x", "reopen_delay_s": -0.5},
            {"path": "x", "push_poll_s": 0},
            {"path": "x", "max_retries": -1},
            {"path": "x", "shrink_policy": "rewind"},
            {"path": "x", "error_policy": "ignore"},
            {"path": "x", "encoding": "no-such-codec"},
        ]
        for kw in bad:
            with self.assertRaises(ConfigError, msg=str(kw)):
                TailInputConfig(**kw).validate()

    def test_from_dict_keeps_explicit_zero_for_validate(self) -> None:
        for d in (
            {"path": "/x.log", "max_lines_per_drain": 0},
            {"path": "/x.log", "max_lines_per_drain": 0, "max_line_emit": 5},
            {"path": "/x.log", "buffer_capacity": 0},
        ):
            with self.assertRaises(ConfigError, msg=str(d)):
                TailInputConfig.from_dict(d).validate()
        cfg = TailInputConfig.from_dict({"path": "/x.log", "max_lines_per_drain": 0})
        self.assertEqual(cfg.max_lines_per_drain, 0)

    def test_config_error_is_value_error(self) -> None:
        with self.assertRaises(ValueError):
            TailInputConfig(path="").validate()


class TestConfigPersistence(unittest.TestCase):
    def test_load_missing_returns_defaults(self) -> None:
        with TemporaryDirectory() as td:
            cfg = load_config(Path(td))
            self.assertEqual(cfg.to_dict(), TailInputConfig().to_dict())

    def test_load_corrupt_returns_defaults(self) -> None:
        with TemporaryDirectory() as td:
            home = Path(td)
            config_path(home).write_text("{not json", encoding="utf-8")
            self.assertEqual(load_config(home).path, "")

    def test_save_then_load(self) -> None:
        with TemporaryDirectory() as td:
            home = Path(td) / "nested" / "home"
            save_config(home, TailInputConfig(path="/srv/app.log", buffer_capacity=7))

            obj = json.loads(config_path(home).read_text(encoding="utf-8"))
            self.assertEqual(obj.get("path"), "/srv/app.log")

            cfg = load_config(home)
            self.assertEqual(cfg.path, "/srv/app.log")
            self.assertEqual(cfg.buffer_capacity, 7)
            self.assertEqual(list(home.glob("*.tmp")), [])


if __name__ == "__main__":
    unittest.main()
