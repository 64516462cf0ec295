"""SDK-style facade for using the detector without the HTTP server.

Usage (example):

    from scam_detector.sdk import collect_wallet_transactions, assess_transaction

    report = collect_wallet_transactions("eth-mainnet", "0xabc...")
    if report["success"]:
        print(report["scamAnalysis"]["riskLevel"])

    risk = assess_transaction("eth-mainnet", "0x410e...")

Environment variables: see scam_detector.config.Settings for all available options.
"""
from typing import Any, Dict, Optional

from .advisory import AdvisoryAnalyzer
from .config import Settings, get_settings
from .dal import GoldRushClient, TransactionProvider
from .service import collect_transactions
from .workflow import RiskAssessmentWorkflow, run_workflow

__all__ = [
    "get_provider",
    "get_advisor",
    "collect_wallet_transactions",
    "assess_transaction",
    "assess_transaction_async",
]


def get_provider(settings: Optional[Settings] = None) -> GoldRushClient:
    settings = settings or get_settings()
    return GoldRushClient(settings)


def get_advisor(settings: Optional[Settings] = None) -> AdvisoryAnalyzer:
    settings = settings or get_settings()
    return AdvisoryAnalyzer(settings)


def collect_wallet_transactions(
    chain: str,
    address: str,
    *,
    settings: Optional[Settings] = None,
    provider: Optional[TransactionProvider] = None,
    advisor: Optional[AdvisoryAnalyzer] = None,
) -> Dict[str, Any]:
    """End-to-end: fetch -> reconstruct -> profile -> score for one wallet."""
    settings = settings or get_settings()
    return collect_transactions(
        chain,
        address,
        provider=provider or get_provider(settings),
        advisor=advisor or get_advisor(settings),
        extra_routers=settings.extra_dex_routers,
    )


def assess_transaction(
    chain: str,
    tx_hash: str,
    *,
    settings: Optional[Settings] = None,
    provider: Optional[TransactionProvider] = None,
) -> Dict[str, Any]:
    """Run the four analysis tools against one transaction."""
    return run_workflow(chain, tx_hash, provider=provider or get_provider(settings))


async def assess_transaction_async(
    chain: str,
    tx_hash: str,
    *,
    settings: Optional[Settings] = None,
    provider: Optional[TransactionProvider] = None,
) -> Dict[str, Any]:
    workflow = RiskAssessmentWorkflow(provider or get_provider(settings))
    return await workflow.execute(chain, tx_hash)
