import numpy as np
import pandas as pd
from typing import Dict

from sklearn.metrics import confusion_matrix, roc_curve


def rmse(y_true, y_pred) -> float:
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    return float(np.sqrt(np.mean((y_true - y_pred) ** 2)))


def win_counts(share_true, share_pred, threshold: float = 0.5) -> Dict[str, int]:
    """Counties won (share above threshold) in the actual vs predicted shares."""
    share_true = np.asarray(share_true, dtype=float)
    share_pred = np.asarray(share_pred, dtype=float)
    return {
        "n": int(share_true.size),
        "actual_wins": int((share_true > threshold).sum()),
        "predicted_wins": int((share_pred > threshold).sum()),
        "agree": int(((share_true > threshold) == (share_pred > threshold)).sum()),
    }


def confusion_rates(y_true, y_hat) -> Dict[str, float]:
    tn, fp, fn, tp = confusion_matrix(np.asarray(y_true, dtype=int), np.asarray(y_hat, dtype=int), labels=[0, 1]).ravel()
    pos = tp + fn
    neg = tn + fp
    n = pos + neg
    return {
        "tp": int(tp), "fp": int(fp), "tn": int(tn), "fn": int(fn),
        "tpr": float(tp / pos) if pos else np.nan,
        "fnr": float(fn / pos) if pos else np.nan,
        "fpr": float(fp / neg) if neg else np.nan,
        "tnr": float(tn / neg) if neg else np.nan,
        "error_rate": float((fp + fn) / n) if n else np.nan,
    }


def rates_at_threshold(y_true, prob, threshold: float) -> Dict[str, float]:
    # Same convention as roc_curve: positive when prob >= threshold
    prob = np.asarray(prob, dtype=float)
    out = confusion_rates(y_true, (prob >= threshold).astype(int))
    out["threshold"] = float(threshold)
    return out


def roc_table(y_true, prob) -> pd.DataFrame:
    fpr, tpr, thr = roc_curve(np.asarray(y_true, dtype=int), np.asarray(prob, dtype=float))
    out = pd.DataFrame({"threshold": thr, "fpr": fpr, "tpr": tpr})
    out["youden"] = out["tpr"] - out["fpr"]
    return out


def youden_threshold(y_true, prob) -> float:
    """Threshold maximising TPR - FPR over the ROC curve."""
    roc = roc_table(y_true, prob)
    roc = roc.loc[np.isfinite(roc["threshold"])]
    best = roc.loc[roc["youden"].idxmax()]
    return float(min(best["threshold"], 1.0))
