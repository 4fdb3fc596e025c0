"""Shared fixtures for POS Print Service tests."""

import pytest

from pos_print_service.transports.base import BaseTransport


class FakeTransport(BaseTransport):
    """Records every send; fails jobs whose target is listed in ``fail_on``."""

    def __init__(self, hardware_type, events=None, fail_on=(), invalid=None):
        self.hardware_type = hardware_type
        self.events = events if events is not None else []
        self.fail_on = set(fail_on)
        self.invalid = invalid
        self.sent = []

    def _key(self, job):
        return job.ip if self.hardware_type == 'Network' else job.usb_label

    def target(self, job, success=False):
        return f'{self.hardware_type}:{self._key(job)}'

    def validate(self, job):
        return self.invalid

    def send(self, job, markdown, hold_seconds=0):
        self.sent.append((job, hold_seconds))
        self.events.append((job.kind, self._key(job)))
        if self._key(job) in self.fail_on:
            return {'success': False, 'error': 'printer jammed'}
        return {'success': True}


@pytest.fixture
def events():
    return []


@pytest.fixture
def make_transport(events):
    def factory(hardware_type='Network', **kwargs):
        return FakeTransport(hardware_type, events=events, **kwargs)
    return factory


@pytest.fixture
def order_content():
    return [
        {
            'tableCode': 'A1',
            'statementID': 'S-1001',
            'attendant': 'amy_w',
            'food': {'name': 'Beef Noodles', 'num': 2, 'modifier': 'no onion'},
        },
        {
            'tableCode': 'A1',
            'statementID': 'S-1001',
            'attendant': 'amy_w',
            'food': {'name': 'Iced Tea', 'num': 1},
        },
    ]


@pytest.fixture
def bill_content():
    return {
        'shopName': 'Golden Bowl',
        'address': '12 Market Street',
        'statementID': 'S-1001',
        'tableCode': 'A1',
        'attendant': 'amy_w',
        'totalPrice': '58',
        'createdDate': '2024-05-01 12:30',
        'foodList': [
            {'name': 'Rice', 'num': '1', 'price': '4'},
            {'name': 'Beef Noodles', 'num': '2', 'price': '25'},
            {'name': 'Rice', 'num': '1', 'price': '4'},
        ],
    }


def network_order(ip, chef_content):
    return {'hardwareType': 'Network', 'ip': ip, 'chefContent': chef_content}


@pytest.fixture
def network_order_factory(order_content):
    def factory(ip, chef_content=None):
        return network_order(ip, chef_content if chef_content is not None else order_content)
    return factory
