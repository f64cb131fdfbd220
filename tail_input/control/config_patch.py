from dataclasses import dataclass
from typing import Any, Dict, List

from ..config import TailInputConfig


@dataclass
class ConfigPatchResult:
    cfg: TailInputConfig
    out: Dict[str, Any]
    touched: List[str]
    path_changed: bool


def apply_config_patch(*, current_cfg: TailInputConfig, patch: Dict[str, Any]) -> ConfigPatchResult:
    """
    Apply a patch (e.g. CLI overrides) to the current TailInputConfig (pure logic; no IO).

    - Unknown keys are ignored.
    - None values mean "not given" and keep the current value.
    - The result is not validated here; LineTailInput.setup() does that.
    """
    raw_patch = patch if isinstance(patch, dict) else {}
    cur = current_cfg.to_dict()
    prev_path = str(cur.get("path") or "")

    touched: List[str] = []
    for k, v in raw_patch.items():
        if k not in cur or v is None:
            continue
        cur[k] = v
        touched.append(k)

    cfg = TailInputConfig.from_dict(cur)
    return ConfigPatchResult(
        cfg=cfg,
        out=cfg.to_dict(),
        touched=sorted(touched),
        path_changed=str(cfg.path or "") != prev_path,
    )
