"""Progressive-validation replay of a labeled JSONL trace.

Each line is {"features": ["f1", "f2:0.5", ...], "label": "spam"}. Every
example is first predicted, then trained on, so accuracy reflects what the
model knew before seeing it.

Run examples:
  # Baseline perceptron
  python train_driver.py --algorithm perceptron --trace data/synthetic_2k.jsonl

  # Confidence-weighted, default phi=1.0
  python train_driver.py --algorithm cw --trace data/synthetic_2k.jsonl

  # Confidence-weighted, phi derived from eta
  python train_driver.py --algorithm cw --eta 0.9 --trace data/synthetic_2k.jsonl

Outputs land in results/<algorithm>/
"""
from __future__ import annotations
import argparse, csv, json, logging, time
from pathlib import Path
from typing import Iterator, Tuple

from classifier import MulticlassConfidenceWeighted, MulticlassPerceptron
from feature_value import InvalidArgumentError

logger = logging.getLogger(__name__)


def load_examples(trace_path, on_error=None) -> Iterator[Tuple[list, object]]:
    """Yield (features, label) per line. Rows lacking either are dropped.

    A line that is not valid JSON raises InvalidArgumentError, unless
    `on_error(lineno, err)` is given, in which case it is called and the
    line is skipped.
    """
    with open(trace_path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, 1):
            if not line.strip():
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError as e:
                err = InvalidArgumentError(f"line {lineno}: malformed JSON: {e}")
                if on_error is None:
                    raise err from e
                on_error(lineno, err)
                continue
            if not isinstance(obj, dict):
                logger.debug("line %d: not a JSON object", lineno)
                continue
            features = obj.get("features")
            label = obj.get("label")
            if not isinstance(features, list) or label is None:
                logger.debug("line %d: missing features or label", lineno)
                continue
            yield features, label


def build_classifier(algorithm: str, phi=None, eta=None):
    if algorithm == "perceptron":
        return MulticlassPerceptron()
    if algorithm == "cw":
        return MulticlassConfidenceWeighted(phi=phi, eta=eta)
    raise ValueError(f"Unknown algorithm: {algorithm}")


def run(args: argparse.Namespace) -> dict:
    out_dir = Path(args.out_dir) / args.algorithm
    out_dir.mkdir(parents=True, exist_ok=True)

    clf = build_classifier(args.algorithm, args.phi, args.eta)

    total = correct = updates = skipped = 0

    def on_bad_line(lineno, err):
        nonlocal skipped
        skipped += 1
        logger.warning("skipping line %d: %s", lineno, err)

    t_wall0 = time.perf_counter()
    for features, label in load_examples(args.trace, on_bad_line if args.skip_invalid else None):
        try:
            predicted = clf.predict(features)
            updated = clf.train_one(features, label)
        except InvalidArgumentError as e:
            if not args.skip_invalid:
                raise
            skipped += 1
            logger.warning("skipping example %d: %s", total + skipped, e)
            continue

        total += 1
        if predicted == label:
            correct += 1
        if updated:
            updates += 1

    wall = time.perf_counter() - t_wall0

    num_labels = len(clf.registry)
    num_weights = clf.registry.num_features()
    rows = clf.flush()

    accuracy = (correct / total) if total else 0.0
    eps = (total / wall) if wall > 0 else 0.0

    # write outputs under <out_dir>/<algorithm>/
    with open(out_dir / "model.csv", "w", newline="", encoding="utf-8") as f:
        cw = csv.writer(f)
        cw.writerow(["label", "feature", "weight", "covariance"])
        cw.writerows(rows)

    phi = getattr(clf, "phi", None)
    summary = (
        f"Algorithm: {args.algorithm}\n"
        f"Trace: {args.trace}\n"
        f"Phi: {phi if phi is not None else '-'}\n"
        f"Total Examples: {total}\n"
        f"Skipped: {skipped}\n"
        f"Accuracy: {accuracy:.2%}\n"
        f"Mistakes: {total - correct} | Updates: {updates}\n"
        f"Labels: {num_labels} | Weights: {num_weights}\n"
        f"Examples/s: {eps:.2f} | Wall Time: {wall:.2f} s\n"
    )
    with open(out_dir / "summary.txt", "w", encoding="utf-8") as f:
        f.write(summary)
    print(summary, end="")

    return {
        "total": total,
        "correct": correct,
        "updates": updates,
        "skipped": skipped,
        "labels": num_labels,
        "weights": num_weights,
        "accuracy": accuracy,
    }


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Replay a labeled JSONL trace through an online multiclass classifier")
    p.add_argument("--trace", required=True, help="Path to JSONL trace file")
    p.add_argument("--algorithm", choices=["perceptron", "cw"], default="cw")
    p.add_argument("--phi", "--confidence", dest="phi", type=float, default=None,
                   help="Confidence parameter phi [default 1.0]; overrides --eta")
    p.add_argument("--eta", "--hyper-c", dest="eta", type=float, default=None,
                   help="Confidence hyperparameter eta in range (0.5, 1]")
    p.add_argument("--out-dir", dest="out_dir", default="results")
    p.add_argument("--skip-invalid", dest="skip_invalid", action="store_true",
                   help="Skip malformed JSON lines and examples with malformed features instead of aborting")
    p.add_argument("--log-level", dest="log_level", default="WARNING")
    return p


if __name__ == "__main__":
    args = build_parser().parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(name)s %(levelname)s %(message)s")
    run(args)
