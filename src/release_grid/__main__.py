# src/release_grid/__main__.py

from __future__ import annotations

from .cli.main import main

raise SystemExit(main())
