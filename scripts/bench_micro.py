from __future__ import annotations

import argparse
import csv
import json
import sys
from pathlib import Path
from statistics import mean, pstdev

# policy name -> (train_bias, bias_indexing)
POLICIES = {
    "live": (True, "output"),
    "scratch": (False, "output"),
    "input-flag": (True, "input"),
}


def _fmt_mu_sigma(vals):
    mu = mean(vals)
    sd = pstdev(vals) if len(vals) > 1 else 0.0
    return f"{mu:.4f} ± {sd:.4f}"


def _make_store(seed, classes, width, per_class):
    import numpy as np

    from sketchnet.core.types import TrainingSample
    from sketchnet.data.samples import SampleStore

    rng = np.random.default_rng(seed)
    centers = rng.uniform(0.0, 1.0, size=(classes, width))
    store = SampleStore(num_classes=classes)
    for _ in range(per_class):
        for label, center in enumerate(centers):
            features = center + 0.1 * rng.standard_normal(width)
            store.add_sample(TrainingSample(features=features, label=label))
    return store


def train_one(policy, seed, steps, lr, classes=4, width=16, hidden=8):
    import numpy as np

    from sketchnet.core.topology import LayerSpec, TopologyConfig
    from sketchnet.network import Network
    from sketchnet.training.losses import mean_squared_error
    from sketchnet.training.trainer import Trainer

    train_bias, indexing = POLICIES[policy]
    topo = TopologyConfig(
        [
            LayerSpec(width, True, "identity"),
            LayerSpec(hidden, True, "sigmoid"),
            LayerSpec(classes, True, "sigmoid"),
        ],
        bias_indexing=indexing,
    )
    store = _make_store(seed, classes, width, per_class=8)
    network = Network(topo, seed=seed + 1000)
    Trainer(network, store, learning_rate=lr, train_bias=train_bias).run(max_steps=steps)

    eye = np.eye(classes)
    losses, hits = [], []
    for sample in store:
        output = network.compute_output(sample.features)
        losses.append(mean_squared_error(output, eye[sample.label]))
        hits.append(int(np.argmax(output)) == sample.label)
    return {"final_loss": float(np.mean(losses)), "final_acc": float(np.mean(hits))}


def main():
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))

    ap = argparse.ArgumentParser()
    ap.add_argument("--seeds", nargs="+", type=int, default=[123, 124, 125])
    ap.add_argument("--steps", type=int, default=2000)
    ap.add_argument("--lr", type=float, default=0.1)
    ap.add_argument("--out", type=str, default=".artifacts/bench")
    args = ap.parse_args()

    out = Path(args.out)
    out.mkdir(parents=True, exist_ok=True)
    runs = []
    for policy in POLICIES:
        for s in args.seeds:
            r = train_one(policy, seed=s, steps=args.steps, lr=args.lr)
            runs.append({"policy": policy, "seed": s, **r})
    (out / "results.jsonl").write_text(
        "\n".join(json.dumps(x) for x in runs), encoding="utf-8"
    )

    agg = {}
    for policy in POLICIES:
        accs = [r["final_acc"] for r in runs if r["policy"] == policy]
        losses = [r["final_loss"] for r in runs if r["policy"] == policy]
        agg[policy] = {
            "n": len(accs),
            "final_acc_mu": mean(accs),
            "final_acc_sd": pstdev(accs) if len(accs) > 1 else 0.0,
            "final_loss_mu": mean(losses),
            "final_loss_sd": pstdev(losses) if len(losses) > 1 else 0.0,
        }
    live_acc = agg["live"]["final_acc_mu"]
    for policy in POLICIES:
        agg[policy]["delta_acc_vs_live"] = agg[policy]["final_acc_mu"] - live_acc

    csv_path = out / "bench_micro.csv"
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(
            [
                "policy",
                "seeds",
                "steps",
                "final_loss_mu",
                "final_loss_sd",
                "final_acc_mu",
                "final_acc_sd",
                "delta_acc_vs_live",
            ]
        )
        for policy in POLICIES:
            a = agg[policy]
            w.writerow(
                [
                    policy,
                    a["n"],
                    args.steps,
                    f"{a['final_loss_mu']:.4f}",
                    f"{a['final_loss_sd']:.4f}",
                    f"{a['final_acc_mu']:.4f}",
                    f"{a['final_acc_sd']:.4f}",
                    f"{a['delta_acc_vs_live']:.4f}",
                ]
            )

    md_path = out / "bench_micro.md"
    lines = []
    lines.append("### Micro-Benchmark: bias learning policies (synthetic clusters)")
    lines.append("")
    lines.append(f"- Seeds: `{args.seeds}`; Steps: `{args.steps}`; LR: `{args.lr}`")
    lines.append("")
    lines.append("| Policy | Final Loss (μ±σ) | Final Acc (μ±σ) | ΔAcc vs live | Seeds | Steps |")
    lines.append("|---|---:|---:|---:|---:|---:|")
    for policy in POLICIES:
        fl = [r["final_loss"] for r in runs if r["policy"] == policy]
        fa = [r["final_acc"] for r in runs if r["policy"] == policy]
        metric_line = (
            f"| {policy.upper()} | {_fmt_mu_sigma(fl)} | {_fmt_mu_sigma(fa)} | "
            f"{agg[policy]['delta_acc_vs_live']:+.4f} | {agg[policy]['n']} | {args.steps} |"
        )
        lines.append(metric_line)
    md_path.write_text("\n".join(lines), encoding="utf-8")
    print("Wrote:", csv_path, md_path)


if __name__ == "__main__":
    main()
