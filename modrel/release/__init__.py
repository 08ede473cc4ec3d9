"""Release pipeline.

- semver: version parsing, bumping and ordering
- model: request, context and state types
- staging: release directory, payload and archive
- changelog: draft, editor hand-off, commit message
- install: trial installs into the local mods directory
- sequencer: the ordered, fail-fast release state machine
- service: entry points used by the CLI
"""

from __future__ import annotations
