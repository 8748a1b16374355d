"""
Port scanning routes.
"""
import logging

from flask import current_app, jsonify, request

from hostdash.monitors.ports import COMMON_PORTS, get_local_ip, scan_ports
from hostdash.utils.utils import error_response
from . import bp

logger = logging.getLogger('hostdash')

def parse_port_list(raw: str):
    """
    Parse a comma separated port list.

    Raises:
        ValueError: on anything that is not an integer in 1..65535
    """
    ports = []
    for part in raw.split(','):
        part = part.strip()
        if not part:
            continue
        try:
            port = int(part)
        except ValueError:
            raise ValueError(f"Invalid port: {part}")
        if not 1 <= port <= 65535:
            raise ValueError(f"Port out of range: {port}")
        ports.append(port)
    if not ports:
        raise ValueError("No ports given")
    return ports

@bp.route('/api/ports/scan', methods=['GET'])
def scan():
    """Scan a host for listening TCP services."""
    host = request.args.get('host', 'localhost').strip() or 'localhost'
    raw_ports = request.args.get('ports', '').strip()

    # An empty list means the common-port table
    ports = None
    if raw_ports:
        try:
            ports = parse_port_list(raw_ports)
        except ValueError as e:
            return error_response(str(e), 400)

    try:
        services = scan_ports(host, ports, timeout=current_app.config['PORT_SCAN_TIMEOUT'])
    except Exception as e:
        logger.error(f"[PORTS] Error scanning {host}: {str(e)}")
        return jsonify({'error': 'Failed to scan ports'}), 500

    return jsonify({
        'host': host,
        'services': [service.to_dict() for service in services],
        'count': len(services)
    }), 200

@bp.route('/api/ports/local-ip', methods=['GET'])
def local_ip():
    try:
        return jsonify({'ip': get_local_ip() or 'localhost'}), 200
    except Exception as e:
        logger.error(f"[PORTS] Error getting local IP: {str(e)}")
        return jsonify({'error': 'Failed to get local IP'}), 500

@bp.route('/api/ports/common-ports', methods=['GET'])
def common_ports():
    return jsonify({
        'ports': [{'port': port, 'service': service} for port, service in sorted(COMMON_PORTS.items())]
    }), 200
