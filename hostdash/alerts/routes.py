"""
Threshold alert routes.
"""
import logging

from flask import current_app, jsonify

from . import bp
from . import utils

logger = logging.getLogger('hostdash')

@bp.route('/api/alerts', methods=['GET'])
def get_alerts():
    """Evaluate current load, memory and disk usage against the thresholds."""
    try:
        thresholds = utils.get_thresholds(current_app.config)
        metrics = utils.read_metrics()
        alerts = utils.compute_alerts(metrics['cpuLoad1'], metrics['usedMemPct'],
                                      metrics['diskPct'], thresholds)
        if alerts:
            logger.info(f"[ALERTS] {len(alerts)} active alert(s)")
        return jsonify({
            'thresholds': thresholds,
            'metrics': metrics,
            'exceeded': utils.threshold_flags(metrics, thresholds),
            'alerts': alerts
        }), 200
    except Exception as e:
        logger.error(f"[ALERTS] Error generating alerts: {str(e)}")
        return jsonify({'error': 'Failed to get alerts'}), 500
