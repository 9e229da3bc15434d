from pathlib import Path
from typing import Any, Dict, List

from .io import write_csv, write_json, write_parquet
from .suite import ModelResults


def build_summary(results: ModelResults) -> Dict[str, Any]:
    clusters = results.clusters
    return {
        "candidate": results.candidate,
        "n_counties": int(len(results.county)),
        "linear": results.linear.metrics,
        "logistic": {**results.logistic.metrics, "threshold_opt": results.logistic.threshold_opt},
        "forest": results.forest.metrics,
        "boost": results.boost.metrics,
        "kmeans": {
            "n_clusters": int(len(clusters.summary)),
            "inertia": clusters.inertia,
            "elbow_k": clusters.elbow_k,
            "explained_variance_pc": [float(v) for v in clusters.explained_variance[:2]],
            "win_rate_by_cluster": {
                int(r.cluster): float(r.win_rate) for r in clusters.summary.itertuples(index=False)
            },
        },
    }


def write_model_reports(results: ModelResults, out_dir: Path) -> Dict[str, Path]:
    out_dir = Path(out_dir)
    outs = {
        "metrics": out_dir / "metrics.json",
        "ols_coefficients": out_dir / "ols_coefficients.csv",
        "logistic_coefficients": out_dir / "logistic_coefficients.csv",
        "roc": out_dir / "logistic_roc.csv",
        "forest_importance": out_dir / "forest_importance.csv",
        "boost_influence": out_dir / "boost_influence.csv",
        "boost_cv": out_dir / "boost_cv_loss.csv",
        "cluster_summary": out_dir / "cluster_summary.csv",
        "inertia_sweep": out_dir / "inertia_sweep.csv",
        "svd_scores": out_dir / "svd_scores.parquet",
    }
    write_json(build_summary(results), outs["metrics"])
    write_csv(results.linear.coefficients, outs["ols_coefficients"])
    write_csv(results.logistic.coefficients, outs["logistic_coefficients"])
    write_csv(results.logistic.roc, outs["roc"])
    write_csv(results.forest.importance, outs["forest_importance"])
    write_csv(results.boost.influence, outs["boost_influence"])
    write_csv(results.boost.cv_loss, outs["boost_cv"])
    write_csv(results.clusters.summary, outs["cluster_summary"])
    write_csv(results.clusters.sweep, outs["inertia_sweep"])
    write_parquet(results.clusters.svd_scores, outs["svd_scores"])
    return outs


def format_float(value: float) -> str:
    return f"{value:.3f}"


def _rates_line(rates: Dict[str, float]) -> str:
    return ", ".join(f"{k}: {format_float(rates[k])}" for k in ("tpr", "fpr", "tnr", "fnr", "error_rate"))


def format_summary(summary: Dict[str, Any]) -> List[str]:
    lines = [
        f"County vote models for {summary['candidate']} ({summary['n_counties']} counties)",
        "=" * 40,
    ]

    lin = summary["linear"]
    wins = lin["test_wins"]
    lines += [
        "\nLinear regression (two-candidate share):",
        f"  - RMSE test: {format_float(lin['rmse_test'])} (train {format_float(lin['rmse_train'])})",
        f"  - R2: {format_float(lin['r2'])}",
        f"  - Test counties won: actual {wins['actual_wins']}, predicted {wins['predicted_wins']} of {wins['n']}",
    ]

    log = summary["logistic"]
    lines += [
        "\nLogistic regression (county winner):",
        f"  - @0.5: {_rates_line(log['at_default'])}",
        f"  - @{format_float(log['threshold_opt'])} (Youden): {_rates_line(log['at_optimal'])}",
    ]

    lines += [
        "\nRandom forest:",
        f"  - Test misclassification: {format_float(summary['forest']['test_error'])}",
        "\nBoosted trees:",
        f"  - Trees (CV): {summary['boost']['n_trees']}",
        f"  - Test misclassification: {format_float(summary['boost']['test_error'])}",
    ]

    km = summary["kmeans"]
    lines.append(f"\nK-means (k={km['n_clusters']}, elbow suggestion={km['elbow_k']}):")
    for cluster, rate in km["win_rate_by_cluster"].items():
        lines.append(f"  - Cluster {cluster}: won {format_float(rate)}")
    return lines
