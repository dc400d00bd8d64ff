"""Demo entrypoint for the capture package.

Logs a single object position to an output named `DataCapture` and flushes it,
printing where the data lands. Useful as a manual smoke test of the whole
create -> submit -> flush path.
"""

from __future__ import annotations

import logging
from pathlib import Path

from capture import ObjectPosition, RecordLogger, Vector3
from config import Config, load_config


def run_demo(cfg: Config | None = None) -> Path:
    """Capture one example position record and return the destination path."""
    cfg = cfg or load_config()
    capture_cfg = cfg.capture

    # Where data will be written for this attempt.
    print(capture_cfg.output_dir)

    data_logger = RecordLogger("DataCapture", directory=capture_cfg.output_dir, sink_format=capture_cfg.sink_format)
    with data_logger:
        example_position = Vector3.create(x=0, y=1, z=2)
        data_logger.submit(ObjectPosition.create(position=example_position, label="ExampleObjectName"))
        data_logger.flush_all()

    return data_logger.destination


def main() -> None:
    """CLI entrypoint for `data-capture` / `python src/main.py`."""
    cfg = load_config()
    logging.basicConfig(level=cfg.capture.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run_demo(cfg)


if __name__ == "__main__":
    main()
