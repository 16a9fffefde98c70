from __future__ import annotations

import platform
import sys
from importlib import metadata

import numpy as np


def _safe_pkg_version(name: str) -> str | None:
    try:
        return metadata.version(name)
    except metadata.PackageNotFoundError:
        return None


def get_build_info() -> dict[str, object]:
    """빌드/실행 환경 정보.

    - 바이너리 포맷은 호스트 네이티브 메모리 덤프이므로, 파일을 주고받기 전에
      byte order와 float/index 폭이 같은지 확인하는 용도.
    """
    return {
        "package": {"name": "bagdata", "version": _safe_pkg_version("bagdata")},
        "numpy": {"version": np.__version__},
        "python": {"version": sys.version.split()[0]},
        "platform": {
            "system": platform.system(),
            "release": platform.release(),
            "machine": platform.machine(),
        },
        "native": {
            "byteorder": sys.byteorder,
            "float_bytes": int(np.dtype(np.float64).itemsize),
            "index_bytes": int(np.dtype(np.uintp).itemsize),
        },
    }
