"""
POS Print Service Client
========================

Python SDK for interacting with POS Print Service.

Usage:
    from pos_print_service.client import PrintClient

    client = PrintClient('http://localhost:2000')

    # Kitchen order to a network printer
    result = client.submit(orders=[{
        'hardwareType': 'Network',
        'ip': '192.168.1.50',
        'chefContent': [{'tableCode': 'A1', 'food': {'name': 'Noodles', 'num': 2}}],
    }])
    print(result['resCode'], result['resMsg'])
"""

import requests
from typing import Dict, Any, Optional, List


class PrintClient:
    """Client for POS Print Service."""

    def __init__(self, base_url: str = 'http://localhost:2000', api_key: str = None,
                 timeout: float = 300):
        """
        Initialize client.

        Args:
            base_url: Base URL of the print service
            api_key: API key for authentication
            timeout: Seconds to wait for a print request; requests queue
                behind each other on the service, so keep this generous
        """
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        """Get request headers."""
        headers = {'Content-Type': 'application/json'}
        if self.api_key:
            headers['Authorization'] = f'Bearer {self.api_key}'
        return headers

    def _request(self, method: str, endpoint: str, data: Dict = None) -> Dict[str, Any]:
        """Make API request."""
        url = f'{self.base_url}{endpoint}'

        try:
            if method == 'GET':
                response = requests.get(url, headers=self._headers(), timeout=30)
            elif method == 'POST':
                response = requests.post(url, json=data, headers=self._headers(),
                                         timeout=self.timeout)
            else:
                raise ValueError(f'Unknown method: {method}')

            return response.json()

        except requests.exceptions.Timeout:
            return {'resCode': '1', 'resMsg': 'Request timeout'}
        except requests.exceptions.ConnectionError:
            return {'resCode': '1', 'resMsg': f'Cannot connect to {self.base_url}'}
        except ValueError as e:
            return {'resCode': '1', 'resMsg': str(e)}

    # =========================================================================
    # Health
    # =========================================================================

    def health(self) -> Dict[str, Any]:
        """Check service health."""
        return self._request('GET', '/health')

    def is_online(self) -> bool:
        """Check if service is online."""
        result = self.health()
        return result.get('status') == 'online'

    # =========================================================================
    # Printing
    # =========================================================================

    def submit(self, bills: Optional[List[Dict[str, Any]]] = None,
               orders: Optional[List[Dict[str, Any]]] = None,
               refunds: Optional[List[Dict[str, Any]]] = None,
               reports: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        """
        Submit a print request.

        Args:
            bills: Bill jobs (``customerContent``)
            orders: Kitchen order jobs (``chefContent``)
            refunds: Refund jobs (``refundContent``)
            reports: Revenue report jobs (``revenueAnalysis``)

        Returns:
            Dict with ``resCode`` ('0' success, '1' failure), ``resMsg``,
            ``session`` and per-job ``results``
        """
        data = {}
        if bills is not None:
            data['toPrintBillContent'] = bills
        if orders is not None:
            data['toPrintOrderContent'] = orders
        if refunds is not None:
            data['toPrintRefundContent'] = refunds
        if reports is not None:
            data['toPrintRevenueAnalysisContent'] = reports
        return self._request('POST', '/print', data)

    # =========================================================================
    # Printers
    # =========================================================================

    def list_usb_printers(self) -> List[Dict[str, str]]:
        """USB printers attached to the service host."""
        result = self._request('GET', '/api/printers/usb')
        return result.get('printers', [])

    def monitor_status(self) -> Dict[str, Dict[str, Any]]:
        """Reachability of network printers the service has printed to."""
        result = self._request('GET', '/api/monitor')
        return result.get('printers', {})
