"""Read-only selectors over a Document snapshot."""

from devspace_kernel.selectors.base import BaseSelector
from devspace_kernel.selectors.statistics_selector import Statistics, StatisticsSelector

__all__ = ["BaseSelector", "Statistics", "StatisticsSelector"]
