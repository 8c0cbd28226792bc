from __future__ import annotations

import os


def set_umask_from_env() -> None:
    umask_value = os.environ.get("RSSNIX_UMASK", "022")
    try:
        os.umask(int(umask_value, 8))
    except (ValueError, TypeError):
        os.umask(0o022)
