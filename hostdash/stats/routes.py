"""
System statistics routes.
"""
import logging
import time

from flask import jsonify

from hostdash.utils.utils import get_component
from . import bp

logger = logging.getLogger('hostdash')

def _snapshot():
    return get_component('system_monitor').collect_stats()

@bp.route('/api/system/stats', methods=['GET'])
def get_system_stats():
    """Get a complete system snapshot."""
    try:
        return jsonify(_snapshot().to_dict()), 200
    except Exception as e:
        logger.error(f"[STATS] Error getting system stats: {str(e)}")
        return jsonify({'error': 'Failed to get system stats'}), 500

@bp.route('/api/system/cpu-history', methods=['GET'])
def get_cpu_history():
    """Current CPU figures plus the rolling usage history."""
    try:
        monitor = get_component('system_monitor')
        cpu = monitor.collect_stats().cpu
        return jsonify({
            **cpu.to_dict(),
            'history': list(monitor.history.cpu),
            'timestamp': time.time()
        }), 200
    except Exception as e:
        logger.error(f"[STATS] Error getting CPU history: {str(e)}")
        return jsonify({'error': 'Failed to get CPU data'}), 500

@bp.route('/api/system/memory-history', methods=['GET'])
def get_memory_history():
    """Current memory figures plus the rolling usage history."""
    try:
        monitor = get_component('system_monitor')
        memory = monitor.collect_stats().memory
        return jsonify({
            **memory.to_dict(),
            'history': list(monitor.history.memory),
            'timestamp': time.time()
        }), 200
    except Exception as e:
        logger.error(f"[STATS] Error getting memory history: {str(e)}")
        return jsonify({'error': 'Failed to get memory data'}), 500

@bp.route('/api/system/disk-usage', methods=['GET'])
def get_disk_usage():
    try:
        disks = get_component('system_monitor').read_disks()
        return jsonify({
            'disks': [disk.to_dict() for disk in disks],
            'timestamp': time.time()
        }), 200
    except Exception as e:
        logger.error(f"[STATS] Error getting disk usage: {str(e)}")
        return jsonify({'error': 'Failed to get disk data'}), 500

@bp.route('/api/system/network-stats', methods=['GET'])
def get_network_stats():
    try:
        interfaces = get_component('system_monitor').read_network()
        return jsonify({
            'interfaces': [interface.to_dict() for interface in interfaces],
            'timestamp': time.time()
        }), 200
    except Exception as e:
        logger.error(f"[STATS] Error getting network stats: {str(e)}")
        return jsonify({'error': 'Failed to get network data'}), 500
