import unittest

from tail_input.config import TailInputConfig
from tail_input.control.config_patch import apply_config_patch


class TestControlConfigPatch(unittest.TestCase):
    def test_patch_skips_none_and_unknown_keys(self) -> None:
        cur = TailInputConfig(path="/a.log", buffer_capacity=5)
        res = apply_config_patch(
            current_cfg=cur,
            patch={"buffer_capacity": None, "max_lines_per_drain": 9, "bogus": 1},
        )
        self.assertEqual(res.cfg.buffer_capacity, 5)
        self.assertEqual(res.cfg.max_lines_per_drain, 9)
        self.assertEqual(res.touched, ["max_lines_per_drain"])
        self.assertNotIn("bogus", res.out)
        self.assertFalse(res.path_changed)

    def test_patch_reports_path_change(self) -> None:
        res = apply_config_patch(current_cfg=TailInputConfig(path="/a.log"), patch={"path": "/b.log"})
        self.assertTrue(res.path_changed)
        self.assertEqual(res.cfg.path, "/b.log")

    def test_patch_does_not_mutate_current(self) -> None:
        cur = TailInputConfig(path="/a.log")
        apply_config_patch(current_cfg=cur, patch={"path": "/b.log", "error_policy": "retry"})
        self.assertEqual(cur.path, "/a.log")
        self.assertEqual(cur.error_policy, "fail")

    def test_non_dict_patch_is_noop(self) -> None:
        cur = TailInputConfig(path="/a.log")
        res = apply_config_patch(current_cfg=cur, patch=None)  # type: ignore[arg-type]
        self.assertEqual(res.out, cur.to_dict())


if __name__ == "__main__":
    unittest.main()
