# make_trace.py
"""Write a synthetic multiclass JSONL trace for train_driver.py.

Every class owns a few prototype features; an example draws most of its
tokens from its class prototype and the rest from a shared noise vocabulary.

  python make_trace.py --n 2000 --classes 4 --out data/synthetic_2k.jsonl
"""
import argparse, json, os

import numpy as np


def make_examples(n: int, n_classes: int, proto_size: int = 8, noise_vocab: int = 200,
                  tokens_per_example: int = 6, noise_frac: float = 0.3, seed: int = 0):
    rng = np.random.default_rng(seed)
    labels = [f"c{k}" for k in range(n_classes)]
    for _ in range(n):
        k = int(rng.integers(n_classes))
        tokens = []
        for _ in range(tokens_per_example):
            if rng.random() < noise_frac:
                tokens.append(f"noise{int(rng.integers(noise_vocab))}")
            else:
                name = f"{labels[k]}_f{int(rng.integers(proto_size))}"
                value = round(float(rng.uniform(0.5, 2.0)), 3)
                tokens.append(f"{name}:{value}")
        yield {"features": tokens, "label": labels[k]}


def main():
    p = argparse.ArgumentParser(description="Generate a synthetic labeled multiclass trace")
    p.add_argument("--n", type=int, default=2000)
    p.add_argument("--classes", type=int, default=4)
    p.add_argument("--noise-frac", dest="noise_frac", type=float, default=0.3)
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--out", default="data/synthetic_2k.jsonl")
    args = p.parse_args()

    os.makedirs(os.path.dirname(args.out) or ".", exist_ok=True)
    with open(args.out, "w", encoding="utf-8") as out:
        for ex in make_examples(args.n, args.classes, noise_frac=args.noise_frac, seed=args.seed):
            out.write(json.dumps(ex, ensure_ascii=False) + "\n")
    print(f"Wrote {args.out}")


if __name__ == "__main__":
    main()
