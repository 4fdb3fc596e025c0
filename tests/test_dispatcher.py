"""Tests for job dispatch across transports."""

from unittest.mock import MagicMock

import pytest
import usb.core

from pos_print_service.dispatcher import Dispatcher
from pos_print_service.models import PrintRequest
from pos_print_service.probe import ReachabilityMonitor
from pos_print_service.transports import NetworkTransport, UsbTransport


def _request(body, session='sess-1'):
    return PrintRequest.from_body(body, session)


class FakeUsbPrinter:
    """Stands in for UsbPrinter; logs open/write/close into a shared timeline."""

    timeline = []

    def __init__(self, vid=None, pid=None, timeout=None):
        self.vid = vid
        self.pid = pid

    def __enter__(self):
        self.timeline.append(('open', self.vid, self.pid))
        return self

    def write(self, data):
        self.timeline.append(('write', self.vid, self.pid))
        return len(data)

    def __exit__(self, *exc):
        self.timeline.append(('close', self.vid, self.pid))
        return False


@pytest.fixture
def fake_usb_printer():
    FakeUsbPrinter.timeline = []
    return FakeUsbPrinter


class TestNetworkJobs:

    def _transport(self, reachable=True, monitor=None):
        transport = NetworkTransport(monitor=monitor, probe=MagicMock(return_value=reachable),
                                     encoder=lambda markdown: markdown.encode())
        transport._send_raw = MagicMock(return_value={'success': True})
        return transport

    def test_non_ipv4_address_fails_without_probe(self, network_order_factory):
        transport = self._transport()
        dispatcher = Dispatcher(transports={'Network': transport})

        reporter = dispatcher.dispatch(_request({'toPrintOrderContent': [network_order_factory('not-an-ip')]}))

        outcome = reporter.outcomes[0]
        assert not outcome.ok
        assert outcome.message == ('Print order to Network failed: ip:not-an-ip incorrect, '
                                   'should be IPv4 format like: 1.1.1.1.')
        transport.probe.assert_not_called()
        transport._send_raw.assert_not_called()

    def test_missing_address_fails(self, network_order_factory):
        transport = self._transport()
        dispatcher = Dispatcher(transports={'Network': transport})

        reporter = dispatcher.dispatch(_request({'toPrintOrderContent': [network_order_factory(None)]}))

        assert reporter.outcomes[0].message == 'Print order to Network failed: ip empty.'
        transport.probe.assert_not_called()

    def test_unreachable_printer_gets_no_socket_write(self, network_order_factory):
        monitor = ReachabilityMonitor()
        transport = self._transport(reachable=False, monitor=monitor)
        dispatcher = Dispatcher(transports={'Network': transport})

        reporter = dispatcher.dispatch(_request({'toPrintOrderContent': [network_order_factory('10.0.0.7')]}))

        assert reporter.outcomes[0].message == 'Print order to Network failed: ip:10.0.0.7 failed to connect.'
        transport.probe.assert_called_once_with('10.0.0.7')
        transport._send_raw.assert_not_called()
        assert monitor.addresses == ['10.0.0.7']

    def test_reachable_printer_receives_receipt(self, network_order_factory):
        transport = self._transport()
        dispatcher = Dispatcher(transports={'Network': transport})

        reporter = dispatcher.dispatch(_request({'toPrintOrderContent': [network_order_factory('10.0.0.7')]}))

        assert reporter.outcomes[0].ok
        assert reporter.outcomes[0].message == 'Print order to Network:10.0.0.7 success.'
        host, data = transport._send_raw.call_args[0]
        assert host == '10.0.0.7'
        assert b'Beef Noodles' in data

    def test_socket_failure_is_reported(self, network_order_factory):
        transport = self._transport()
        transport._send_raw.return_value = {'success': False, 'error': 'Connection refused by 10.0.0.7:9100'}
        dispatcher = Dispatcher(transports={'Network': transport})

        reporter = dispatcher.dispatch(_request({'toPrintOrderContent': [network_order_factory('10.0.0.7')]}))

        assert reporter.outcomes[0].message == \
            'Print order to Network failed: Connection refused by 10.0.0.7:9100'


class TestUsbJobs:

    def test_no_usb_printers_fails_without_open(self, bill_content):
        factory = MagicMock()
        transport = UsbTransport(finder=lambda: [], device_factory=factory)
        dispatcher = Dispatcher(transports={'USB': transport})
        body = {'toPrintBillContent': [{'hardwareType': 'USB', 'vid': '0x0416', 'pid': '0x5011',
                                        'customerContent': bill_content}]}

        reporter = dispatcher.dispatch(_request(body))

        assert reporter.outcomes[0].message == \
            'Print bill to USB:[0x0416;0x5011] failed: USB Printers Not Found'
        factory.assert_not_called()

    def test_same_device_jobs_hold_for_accumulated_budget(self, order_content, bill_content,
                                                           fake_usb_printer):
        sleeps = []

        def sleep(seconds):
            sleeps.append(seconds)
            fake_usb_printer.timeline.append(('hold', seconds))

        transport = UsbTransport(finder=lambda: [object()], device_factory=fake_usb_printer,
                                 encoder=lambda markdown: b'x', sleep=sleep)
        dispatcher = Dispatcher(transports={'USB': transport}, unit_seconds=1.0)
        same = {'hardwareType': 'USB', 'vid': 1046, 'pid': 20497}
        other = {'hardwareType': 'USB', 'vid': 1208, 'pid': 3605}
        body = {
            'toPrintBillContent': [dict(same, customerContent=bill_content)],
            'toPrintOrderContent': [dict(same, chefContent=order_content),
                                    dict(other, chefContent=order_content[:1])],
        }

        reporter = dispatcher.dispatch(_request(body))

        assert all(o.ok for o in reporter.outcomes)
        # bill (1 slip) + order (2 slips) on the same printer
        assert sleeps == [3.0, 3.0, 1.0]
        first_close = fake_usb_printer.timeline.index(('close', 1046, 20497))
        second_open = fake_usb_printer.timeline.index(('open', 1046, 20497), first_close)
        assert fake_usb_printer.timeline[first_close - 1] == ('hold', 3.0)
        assert second_open > first_close


class TestBatch:

    def test_failed_job_does_not_stop_the_batch(self, make_transport, events, network_order_factory):
        transport = make_transport('Network', fail_on={'10.0.0.2'})
        dispatcher = Dispatcher(transports={'Network': transport})
        body = {'toPrintOrderContent': [network_order_factory(ip) for ip in
                                        ('10.0.0.1', '10.0.0.2', '10.0.0.3')]}

        reporter = dispatcher.dispatch(_request(body))

        assert [o.ok for o in reporter.outcomes] == [True, False, True]
        assert events == [('order', '10.0.0.1'), ('order', '10.0.0.2'), ('order', '10.0.0.3')]
        summary = reporter.summary()
        assert summary.code == '1'
        assert summary.message == 'Print order to Network failed: printer jammed'

    def test_groups_are_dispatched_in_fixed_order(self, make_transport, events, order_content,
                                                   bill_content):
        dispatcher = Dispatcher(transports={'Network': make_transport('Network')})
        job = {'hardwareType': 'Network', 'ip': '10.0.0.1'}
        body = {
            'toPrintRefundContent': [dict(job, refundContent={'food': {'name': 'Tea', 'num': 1}})],
            'toPrintOrderContent': [dict(job, chefContent=order_content)],
            'toPrintBillContent': [dict(job, customerContent=bill_content)],
            'toPrintRevenueAnalysisContent': [dict(job, revenueAnalysis={'shopName': 'Golden Bowl'})],
        }

        dispatcher.dispatch(_request(body))

        assert [kind for kind, _ in events] == ['report', 'bill', 'order', 'refund']

    def test_ignored_brand_succeeds_without_sending(self, make_transport, events, bill_content):
        dispatcher = Dispatcher(transports={'Network': make_transport('Network')})
        body = {'toPrintBillContent': [{'hardwareType': 'SUNMI', 'customerContent': bill_content}]}

        reporter = dispatcher.dispatch(_request(body))

        assert reporter.outcomes[0].ok
        assert reporter.outcomes[0].message == 'Print bill: ignore hardwareType SUNMI'
        assert events == []

    def test_unknown_hardware_type_fails(self, make_transport, bill_content):
        dispatcher = Dispatcher(transports={'Network': make_transport('Network')})
        body = {'toPrintBillContent': [{'hardwareType': 'Bluetooth', 'customerContent': bill_content}]}

        reporter = dispatcher.dispatch(_request(body))

        assert reporter.outcomes[0].message == 'Print bill failed: Unsupported hardwareType: Bluetooth'

    def test_bad_content_fails_only_that_job(self, make_transport, events, network_order_factory):
        dispatcher = Dispatcher(transports={'Network': make_transport('Network')})
        body = {
            'toPrintOrderContent': [network_order_factory('10.0.0.1', []),
                                    network_order_factory('10.0.0.2')],
            'toPrintRefundContent': [{'hardwareType': 'Network', 'ip': '10.0.0.3',
                                      'refundContent': {'tableCode': 'A1'}}],
        }

        reporter = dispatcher.dispatch(_request(body))

        messages = [o.message for o in reporter.outcomes]
        assert messages == [
            'Print order failed: chefContent empty.',
            'Print order to Network:10.0.0.2 success.',
            'Print refund failed: refundContent.food empty.',
        ]
        assert events == [('order', '10.0.0.2')]

    def test_transport_crash_becomes_failure(self, make_transport, network_order_factory):
        transport = make_transport('Network')
        transport.send = MagicMock(side_effect=RuntimeError('socket module exploded'))
        dispatcher = Dispatcher(transports={'Network': transport})

        reporter = dispatcher.dispatch(_request({'toPrintOrderContent': [network_order_factory('10.0.0.1'),
                                                                         network_order_factory('10.0.0.2')]}))

        assert len(reporter.outcomes) == 2
        assert reporter.outcomes[0].message == 'Print order failed: socket module exploded'

    def test_malformed_hardware_type_fails_only_that_job(self, make_transport, events):
        dispatcher = Dispatcher(transports={'Network': make_transport('Network')})
        body = {'toPrintRevenueAnalysisContent': [
            {'hardwareType': ['USB'], 'revenueAnalysis': {'shopName': 'Golden Bowl'}},
            {'hardwareType': 'Network', 'ip': '10.0.0.1', 'revenueAnalysis': {'shopName': 'Golden Bowl'}},
        ]}

        reporter = dispatcher.dispatch(_request(body))

        assert reporter.outcomes[0].message == "Print report failed: Unsupported hardwareType: ['USB']"
        assert reporter.outcomes[1].ok
        assert events == [('report', '10.0.0.1')]

    def test_usb_enumeration_error_fails_only_that_job(self, make_transport, events,
                                                       network_order_factory, bill_content):
        def finder():
            raise usb.core.USBError('Access denied', errno=13)

        dispatcher = Dispatcher(transports={'USB': UsbTransport(finder=finder),
                                            'Network': make_transport('Network')})
        body = {
            'toPrintBillContent': [{'hardwareType': 'USB', 'customerContent': bill_content}],
            'toPrintOrderContent': [network_order_factory('10.0.0.1')],
        }

        reporter = dispatcher.dispatch(_request(body))

        assert reporter.outcomes[0].message.startswith('Print bill failed:')
        assert 'Access denied' in reporter.outcomes[0].message
        assert reporter.outcomes[1].ok
        assert events == [('order', '10.0.0.1')]
