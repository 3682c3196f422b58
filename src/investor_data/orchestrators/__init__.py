"""Fetch orchestrators, one per resource kind."""

from investor_data.orchestrators.base import FetchOrchestrator, Listener, OrchestratorState
from investor_data.orchestrators.home import HOME_KEY, HomeOrchestrator
from investor_data.orchestrators.stock_list import StockList, StockListOrchestrator
from investor_data.orchestrators.stock_overview import StockOverviewOrchestrator

__all__ = [
    "FetchOrchestrator",
    "Listener",
    "OrchestratorState",
    "HOME_KEY",
    "HomeOrchestrator",
    "StockList",
    "StockListOrchestrator",
    "StockOverviewOrchestrator",
]
