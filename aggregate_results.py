#!/usr/bin/env python3
import argparse, os, re, csv

NUM = r"(-?[0-9]+(?:\.[0-9]+)?)"


def parse_summary(path):
    m = {
        "algorithm": None, "trace": None, "phi": None, "total": None, "skipped": None,
        "accuracy_pct": None, "mistakes": None, "updates": None,
        "labels": None, "weights": None, "eps": None, "wall_s": None,
    }
    try:
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                s = line.strip()
                if s.startswith("Algorithm:"):
                    m["algorithm"] = s.split(":", 1)[1].strip()
                elif s.startswith("Trace:"):
                    m["trace"] = s.split(":", 1)[1].strip()
                elif s.startswith("Phi:"):
                    r = re.search(NUM, s)
                    if r: m["phi"] = float(r.group(1))
                elif s.startswith("Total Examples"):
                    r = re.search(r"\d+", s)
                    if r: m["total"] = int(r.group())
                elif s.startswith("Skipped"):
                    r = re.search(r"\d+", s)
                    if r: m["skipped"] = int(r.group())
                elif s.startswith("Accuracy"):
                    r = re.search(NUM, s)
                    if r: m["accuracy_pct"] = float(r.group(1))
                elif s.startswith("Mistakes"):
                    # "Mistakes: X | Updates: Y"
                    vals = re.findall(r"\d+", s)
                    if len(vals) >= 2:
                        m["mistakes"], m["updates"] = map(int, vals[:2])
                elif s.startswith("Labels"):
                    vals = re.findall(r"\d+", s)
                    if len(vals) >= 2:
                        m["labels"], m["weights"] = map(int, vals[:2])
                elif s.startswith("Examples/s"):
                    # "Examples/s: A | Wall Time: B s"
                    vals = re.findall(NUM, s)
                    if len(vals) >= 2:
                        m["eps"], m["wall_s"] = map(float, vals[:2])
    except FileNotFoundError:
        pass
    return m


HDR = ["algorithm", "trace", "phi", "total", "skipped", "accuracy_pct", "mistakes", "updates",
       "labels", "weights", "eps", "wall_s", "delta_acc_pp_vs_perceptron"]


def collect(base):
    rows = []
    for d in sorted(os.listdir(base)):
        path = os.path.join(base, d, "summary.txt")
        if not os.path.isfile(path):  # skip non-run dirs
            continue
        s = parse_summary(path)
        if not s.get("algorithm"):  # fallback to folder name
            s["algorithm"] = d
        rows.append(s)

    # deltas against the perceptron baseline
    base_row = next((r for r in rows if (r.get("algorithm") or "").lower() == "perceptron"), None)
    for r in rows:
        if base_row and base_row.get("accuracy_pct") is not None:
            r["delta_acc_pp_vs_perceptron"] = (r.get("accuracy_pct") or 0.0) - base_row["accuracy_pct"]
        else:
            r["delta_acc_pp_vs_perceptron"] = None
    return rows


def main():
    p = argparse.ArgumentParser(description="Collect results/<algorithm>/summary.txt into compare.csv")
    p.add_argument("--base", default="results")
    args = p.parse_args()

    if not os.path.isdir(args.base):
        print(f"No {args.base}/ directory found.")
        return

    rows = collect(args.base)
    print("\t".join(HDR))
    for r in rows:
        print("\t".join(str(r.get(k, "")) for k in HDR))

    out_csv = os.path.join(args.base, "compare.csv")
    with open(out_csv, "w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=HDR)
        w.writeheader()
        for r in rows:
            w.writerow(r)
    print(f"Wrote {out_csv}")


if __name__ == "__main__":
    main()
