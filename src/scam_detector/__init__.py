from __future__ import annotations

__version__ = "0.1.0"

from .fraud_detection import (  # noqa: E402
    analyze_scam_patterns,
    detect_flash_loan_pattern,
    detect_front_running_pattern,
    detect_honeypot_patterns,
    detect_phishing_patterns,
    detect_pump_and_dump_patterns,
    detect_rug_pull_patterns,
    detect_sandwich_pattern,
    detect_sophisticated_patterns,
)
from .profiling import analyze_trader_profile  # noqa: E402
from .service import collect_transactions  # noqa: E402
from .trades import classify_transaction, extract_trade, reconstruct_trades  # noqa: E402
from .workflow import RiskAssessmentWorkflow, run_workflow  # noqa: E402

__all__ = [
    "__version__",
    "classify_transaction",
    "extract_trade",
    "reconstruct_trades",
    "analyze_trader_profile",
    "detect_phishing_patterns",
    "detect_rug_pull_patterns",
    "detect_pump_and_dump_patterns",
    "detect_honeypot_patterns",
    "detect_flash_loan_pattern",
    "detect_front_running_pattern",
    "detect_sandwich_pattern",
    "analyze_scam_patterns",
    "detect_sophisticated_patterns",
    "collect_transactions",
    "RiskAssessmentWorkflow",
    "run_workflow",
]
