# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/__main__.py
from __future__ import annotations

import sys
import traceback
from typing import Optional, Sequence

from .cli.args import parse_args_with_config
from .core.exceptions import Fatal, Vc2VcError, format_exception_for_cli
from .orchestrator.orchestrator import Orchestrator
from .vmware.vsphere.errors import RunExitCode, classify_exit_code


def _print_stderr(msg: str) -> None:
    print(msg, file=sys.stderr)


def _safe_log(logger, level: str, msg: str) -> None:
    """
    Log through `logger` when there is one, else print to stderr.
    """
    if logger is None:
        _print_stderr(msg)
        return

    fn = getattr(logger, level, None)
    if callable(fn):
        fn(msg)
    else:
        _print_stderr(msg)


def main(argv: Optional[Sequence[str]] = None) -> None:
    logger = None

    # Phase 1: parse (Fatal can happen here, e.g. a broken config file)
    try:
        args, conf, logger = parse_args_with_config(argv)
    except Fatal as e:
        _print_stderr(f"💥 ERROR    {e}")
        raise SystemExit(e.code)
    except KeyboardInterrupt:
        _print_stderr("Interrupted by user (Ctrl+C).")
        raise SystemExit(int(RunExitCode.INTERRUPTED))

    verbose = getattr(args, "verbose", 0)

    # Phase 2: run
    try:
        rc = Orchestrator(logger, args, conf).run()
    except Fatal as e:
        _safe_log(logger, "error", f"💥 {format_exception_for_cli(e, verbose=verbose)}")
        rc = e.code
    except Vc2VcError as e:
        _safe_log(logger, "error", f"💥 {format_exception_for_cli(e, verbose=verbose)}")
        rc = int(classify_exit_code(e))
    except KeyboardInterrupt:
        _safe_log(logger, "warning", "Interrupted by user (Ctrl+C).")
        rc = int(RunExitCode.INTERRUPTED)
    except Exception as e:
        # unexpected: keep the message short, full traceback at debug level
        _safe_log(logger, "error", f"💥 UNHANDLED {type(e).__name__}: {e}")
        _safe_log(logger, "debug", traceback.format_exc())
        rc = int(classify_exit_code(e))

    raise SystemExit(rc)


if __name__ == "__main__":
    main()
