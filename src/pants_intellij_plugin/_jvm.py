"""Pure Python JDK lookups (no Pants dependencies)."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

TOOLS_JAR_NAME = "tools.jar"


def find_tools_jar(java_home: Union[str, Path, None] = None) -> Optional[Path]:
    """Locate the JDK ``tools.jar`` or return None.

    Looks in ``$JAVA_HOME/lib`` and, for a JRE nested in a JDK, in
    ``$JAVA_HOME/../lib``. JDK 9+ ships no tools.jar, so None is the
    normal answer there.
    """
    if java_home is None:
        java_home = os.environ.get("JAVA_HOME")
    if not java_home:
        return None

    home = Path(java_home)
    for candidate in (home / "lib" / TOOLS_JAR_NAME, home.parent / "lib" / TOOLS_JAR_NAME):
        if candidate.is_file():
            return candidate
    return None
