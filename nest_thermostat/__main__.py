"""Allow ``python -m nest_thermostat``."""

from .cli import main

raise SystemExit(main())
