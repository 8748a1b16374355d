"""
Threshold evaluation for the alerts endpoint.
"""
from typing import Dict, List, Optional

import psutil

def get_thresholds(config) -> Dict[str, float]:
    return {
        'cpuLoadWarn': config['ALERT_CPU_LOAD'],
        'memUsageWarnPct': config['ALERT_MEMORY_PERCENT'],
        'diskUsageWarnPct': config['ALERT_DISK_PERCENT']
    }

def read_metrics(mountpoint: str = '/') -> Dict[str, Optional[float]]:
    """Sample the 1-minute load, used memory percent and root disk percent."""
    memory = psutil.virtual_memory()
    used_mem_pct = round((memory.total - memory.available) / memory.total * 100) if memory.total else 0
    try:
        disk_pct = round(psutil.disk_usage(mountpoint).percent)
    except OSError:
        disk_pct = None
    return {
        'cpuLoad1': round(psutil.getloadavg()[0], 2),
        'usedMemPct': used_mem_pct,
        'diskPct': disk_pct
    }

def compute_alerts(cpu_load1: float, used_mem_pct: float, disk_pct: Optional[float],
                   thresholds: Dict[str, float]) -> List[Dict[str, str]]:
    """
    Compare metrics against thresholds.

    Each threshold is exclusive: a value equal to it does not alert. A disk
    percentage of None (unreadable root) is skipped.
    """
    alerts = []
    if cpu_load1 > thresholds['cpuLoadWarn']:
        alerts.append({'level': 'warning', 'message': f"High CPU load: {cpu_load1:.2f} (1m)"})
    if used_mem_pct > thresholds['memUsageWarnPct']:
        alerts.append({'level': 'warning', 'message': f"High memory usage: {used_mem_pct}%"})
    if disk_pct is not None and disk_pct > thresholds['diskUsageWarnPct']:
        alerts.append({'level': 'warning', 'message': f"High disk usage on /: {disk_pct}%"})
    return alerts

def threshold_flags(metrics: Dict[str, Optional[float]], thresholds: Dict[str, float]) -> Dict[str, bool]:
    disk_pct = metrics['diskPct']
    return {
        'cpuLoad': metrics['cpuLoad1'] > thresholds['cpuLoadWarn'],
        'memory': metrics['usedMemPct'] > thresholds['memUsageWarnPct'],
        'disk': disk_pct is not None and disk_pct > thresholds['diskUsageWarnPct']
    }
