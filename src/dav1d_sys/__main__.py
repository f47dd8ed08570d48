from __future__ import annotations

import sys

from dav1d_sys.cli import main

sys.exit(main())
