"""
main.py
Command line entry for the SMS spam classifier.
Run:
  python main.py                 # load or train, predict two samples, evaluate
  python main.py train
  python main.py predict "u have won the 1 lakh prize"
  python main.py evaluate
  python main.py serve --port 8000
"""
from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

from service_config import Settings, configure_logging
from spam_errors import SpamClassifierError
from spam_service import SpamService

DEMO_MESSAGES = ("how are you ?", "u have won the 1 lakh prize")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Train and query the SMS spam/ham classifier.")
    parser.add_argument("--train-data", type=Path, default=None)
    parser.add_argument("--test-data", type=Path, default=None)
    parser.add_argument("--model", type=Path, default=None)
    parser.add_argument("--no-cache", action="store_true")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("demo", help="load or train the model, run sample predictions and evaluation")
    sub.add_parser("train", help="train on the training data and save the model")
    predict = sub.add_parser("predict", help="classify a message")
    predict.add_argument("text")
    sub.add_parser("evaluate", help="evaluate the saved model on the test data")
    serve = sub.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")
    return parser


def run_demo(service: SpamService) -> None:
    if not service.settings.model_path.exists():
        service.train()
    for text in DEMO_MESSAGES:
        result = service.predict(text)
        print(f"text '{result.input_text}' is {result.label}")
    print("Evaluation Result:")
    print(service.evaluate())


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env().with_overrides(
        train_data_path=args.train_data,
        test_data_path=args.test_data,
        model_path=args.model,
        use_cache=False if args.no_cache else None,
    )
    configure_logging(settings.log_level)
    command = args.command or "demo"

    if command == "serve":
        import uvicorn

        # api:app reads its settings from the environment
        os.environ.update(settings.to_env())
        uvicorn.run("api:app", host=args.host, port=args.port, reload=args.reload)
        return 0

    service = SpamService(settings)
    try:
        if command == "train":
            service.train()
            print(f"Saved model: {settings.model_path}")
        elif command == "predict":
            print(service.predict(args.text).label)
        elif command == "evaluate":
            print(service.evaluate())
        else:
            run_demo(service)
    except SpamClassifierError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
