"""Metrics collection utilities"""
from typing import Dict
from datetime import datetime
from collections import defaultdict


class MetricsCollector:
    """Collects and aggregates metrics for bridge operations"""

    def __init__(self):
        self.metrics = defaultdict(list)
        self.counters = defaultdict(int)

    def increment(self, metric: str, value: int = 1):
        """Increment a counter metric"""
        self.counters[metric] += value

    def record(self, metric: str, value: float):
        """Record a value for aggregation"""
        self.metrics[metric].append({
            'value': value,
            'timestamp': datetime.now()
        })

    def get_summary(self) -> Dict:
        """Get metrics summary"""
        summary = {
            'counters': dict(self.counters),
            'aggregates': {}
        }

        for metric, values in self.metrics.items():
            if values:
                nums = [v['value'] for v in values]
                summary['aggregates'][metric] = {
                    'count': len(nums),
                    'sum': sum(nums),
                    'avg': sum(nums) / len(nums),
                    'min': min(nums),
                    'max': max(nums)
                }

        return summary

    def get_failure_rate(self, operation: str) -> float:
        """Share of failed calls for an operation"""
        total = self.counters.get(f"{operation}_calls", 0)
        if total == 0:
            return 0.0

        return self.counters.get(f"{operation}_failures", 0) / total


# Global metrics instance
metrics = MetricsCollector()
