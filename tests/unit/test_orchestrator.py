"""Unit tests for DeviceMutationOrchestrator."""

import logging

import pytest

from fakes import (
    ADD_ACTION_URL,
    ADD_PAGE_URL,
    BLACKLIST,
    DEVICE_LIST_URL,
    FORM_ACTION_URL,
    ONLINE_DEVICES,
    WHITELIST,
    FakeHttpClient,
    build_page,
)
from netgear_acl.config import RouterConfig
from netgear_acl.exceptions import InvalidAccessError, UnsupportedArityError
from netgear_acl.models import AccessControl, ConnectionState, Device, KnownDevice
from netgear_acl.orchestrator import DeviceMutationOrchestrator, build_orchestrator


@pytest.fixture
def orchestrator(page_client):
    return DeviceMutationOrchestrator(page_client)


def swap_page_after_post(fake_http, page):
    """Serve page for every fetch that follows the next POST."""
    def on_post(uri, body):
        fake_http.pages[DEVICE_LIST_URL] = page
    fake_http.on_post = on_post


class TestReads:
    """Test listing and lookup."""

    def test_list_all(self, orchestrator):
        assert len(orchestrator.list_devices()) == 5

    def test_list_by_connection(self, orchestrator):
        online = orchestrator.list_devices(ConnectionState.ONLINE)
        offline = orchestrator.list_devices(ConnectionState.OFFLINE)
        assert [d.detected_name for d in online] == ['Laptop', 'Phone', 'TV']
        assert [d.detected_name for d in offline] == ['Printer', 'Tablet']

    def test_find_device_any_spelling(self, orchestrator):
        assert orchestrator.find_device('aa-bb-cc-dd-ee-05').detected_name == 'Tablet'

    def test_find_missing(self, orchestrator):
        assert orchestrator.find_device('AA:BB:CC:DD:EE:99') is None


class TestArity:
    """Test single-device enforcement."""

    @pytest.mark.parametrize('count', [0, 2])
    def test_block_rejects_other_counts(self, orchestrator, fake_http, count):
        devices = [Device(mac_address=f'AA:BB:CC:DD:EE:0{i + 1}') for i in range(count)]

        with pytest.raises(UnsupportedArityError) as exc_info:
            orchestrator.block(devices)

        assert exc_info.value.count == count
        assert exc_info.value.operation == 'block'
        assert fake_http.gets == []
        assert fake_http.posts == []

    def test_unblock_rejects_two(self, orchestrator, fake_http):
        with pytest.raises(UnsupportedArityError, match='exactly one'):
            orchestrator.unblock([Device(mac_address='AA:BB:CC:DD:EE:01'),
                                  Device(mac_address='AA:BB:CC:DD:EE:02')])
        assert fake_http.gets == []

    def test_single_item_sequence_accepted(self, orchestrator):
        result = orchestrator.block([Device(mac_address='AA:BB:CC:DD:EE:02')])
        assert result.access_control is AccessControl.BLOCKED


class TestBlockUnblock:
    """Test block and unblock paths."""

    def test_not_found(self, orchestrator, fake_http, caplog):
        with caplog.at_level(logging.WARNING, logger='netgear_acl'):
            assert orchestrator.block(Device(mac_address='AA:BB:CC:DD:EE:99')) is None
        assert 'not found' in caplog.text
        assert fake_http.posts == []

    def test_already_in_state(self, orchestrator, fake_http, caplog):
        with caplog.at_level(logging.INFO, logger='netgear_acl'):
            result = orchestrator.block(Device(mac_address='AA:BB:CC:DD:EE:02'))

        assert result.mac_address == 'AA:BB:CC:DD:EE:02'
        assert result.access_control is AccessControl.BLOCKED
        assert 'already Blocked' in caplog.text
        assert fake_http.posts == []

    def test_block_online_device(self, orchestrator, fake_http):
        after = build_page(online=[
            ('Blocked', 'Laptop', 'AA:BB:CC:DD:EE:01'),
            ('Blocked', 'Phone', 'AA:BB:CC:DD:EE:02'),
            ('Blocked', 'TV', 'AA:BB:CC:DD:EE:03'),
        ], white=WHITELIST, black=BLACKLIST)
        swap_page_after_post(fake_http, after)

        result = orchestrator.block(Device(mac_address='AA:BB:CC:DD:EE:01'))

        assert len(fake_http.posts) == 1
        uri, _, body = fake_http.posts[0]
        assert uri == FORM_ACTION_URL
        assert body['rule_settings'] == '3:AA:BB:CC:DD:EE:01:0:AA:BB:CC:DD:EE:02:0:AA:BB:CC:DD:EE:03:0:'
        assert body['block'] == 'Block'
        assert result.access_control is AccessControl.BLOCKED

    def test_unblock_online_device(self, orchestrator, fake_http):
        orchestrator.unblock(Device(mac_address='AA:BB:CC:DD:EE:03'))

        body = fake_http.posts[0][2]
        assert body['rule_settings'].endswith('AA:BB:CC:DD:EE:03:1:')
        assert body['allow'] == 'Allow'

    def test_read_after_write(self, orchestrator, fake_http):
        orchestrator.block(Device(mac_address='AA:BB:CC:DD:EE:01'))
        gets_after_block = len(fake_http.gets)

        orchestrator.list_devices()
        assert len(fake_http.gets) == gets_after_block

        fake_http.pages[DEVICE_LIST_URL] = build_page()
        orchestrator.page_client.postback({})
        assert orchestrator.list_devices() == []

    def test_unblock_offline_device_moves_lists(self, orchestrator, fake_http):
        """Test an offline device is removed from one list, then added to the other."""
        after = build_page(online=ONLINE_DEVICES, white=WHITELIST + [('Tablet', 'AA:BB:CC:DD:EE:05')])
        swap_page_after_post(fake_http, after)

        result = orchestrator.unblock(Device(mac_address='AA:BB:CC:DD:EE:05'))

        assert len(fake_http.posts) == 2
        remove_uri, _, remove_body = fake_http.posts[0]
        add_uri, _, add_body = fake_http.posts[1]
        assert remove_uri == FORM_ACTION_URL
        assert remove_body['delete_black_lists'] == '1:AA:BB:CC:DD:EE:05:'
        assert add_uri == ADD_ACTION_URL
        assert add_body['mac_addr'] == 'AA:BB:CC:DD:EE:05'
        assert add_body['dev_name'] == 'Tablet'
        assert add_body['access_control_add_type'] == 'allowed_list'
        assert ADD_PAGE_URL in fake_http.gets
        assert result.access_control is AccessControl.ALLOWED

    def test_offline_device_with_unsendable_name_left_in_place(self, orchestrator, fake_http, caplog):
        """Test nothing is removed when the device could not be added back."""
        fake_http.pages[DEVICE_LIST_URL] = build_page(
            online=ONLINE_DEVICES, black=[('Jo’s iPhone', 'AA:BB:CC:DD:EE:05')])

        with caplog.at_level(logging.WARNING, logger='netgear_acl'):
            orchestrator.unblock(Device(mac_address='AA:BB:CC:DD:EE:05'))

        assert fake_http.posts == []
        assert ADD_PAGE_URL not in fake_http.gets
        assert 'cannot be re-added' in caplog.text
        device = orchestrator.find_device('AA:BB:CC:DD:EE:05')
        assert device.access_control is AccessControl.BLOCKED

    def test_offline_move_rejects_unknown_access_before_posting(self, orchestrator, fake_http):
        device = orchestrator.find_device('AA:BB:CC:DD:EE:05')
        with pytest.raises(InvalidAccessError):
            orchestrator.update_offline_device(device, AccessControl.UNKNOWN)
        assert fake_http.posts == []

    def test_undetected_device_not_updated(self, orchestrator, fake_http, caplog):
        device = Device(mac_address='AA:BB:CC:DD:EE:01', access_control=AccessControl.ALLOWED)
        with caplog.at_level(logging.WARNING, logger='netgear_acl'):
            assert orchestrator.update_connected_device(device, AccessControl.BLOCKED) is None
        assert fake_http.posts == []

    def test_update_failure_sends_nothing(self, orchestrator, fake_http):
        device = Device(mac_address='AA:BB:CC:DD:EE:09', connection=ConnectionState.ONLINE)
        orchestrator.update_online_device(device, AccessControl.BLOCKED)
        assert fake_http.posts == []


class TestAddRemove:
    """Test list membership changes."""

    def test_remove_offline(self, orchestrator, fake_http):
        device = orchestrator.find_device('AA:BB:CC:DD:EE:04')
        orchestrator.remove_device(device)

        body = fake_http.posts[0][2]
        assert body['delete_white_lists'] == '1:AA:BB:CC:DD:EE:04:'
        assert body['delete_white'] == 'Remove'

    def test_remove_online_refused(self, orchestrator, fake_http, caplog):
        device = orchestrator.find_device('AA:BB:CC:DD:EE:01')
        with caplog.at_level(logging.WARNING, logger='netgear_acl'):
            orchestrator.remove_device(device)
        assert fake_http.posts == []
        assert 'Only offline devices' in caplog.text

    def test_add_device(self, orchestrator, fake_http):
        device = Device(mac_address='0A:BB:CC:DD:EE:10', name='Camera')
        orchestrator.add_device(device, AccessControl.BLOCKED)

        assert device.access_control is AccessControl.BLOCKED
        assert fake_http.gets == [ADD_PAGE_URL]
        uri, session, body = fake_http.posts[0]
        assert uri == ADD_ACTION_URL
        assert session == 'session-1'
        assert body['access_control_add_type'] == 'blocked_list'

    def test_add_invalid_device(self, orchestrator, fake_http):
        orchestrator.add_device(Device(mac_address='FF:FF:FF:FF:FF:FF', name='Bad'), AccessControl.ALLOWED)
        assert fake_http.posts == []


class TestGlobalToggle:
    """Test enabling and disabling access control."""

    def test_enable(self, orchestrator, fake_http):
        orchestrator.get_access_control_state()
        orchestrator.enable_access_control(AccessControl.BLOCKED)

        body = fake_http.posts[0][2]
        assert body['enable_acl'] == 'enable_acl'
        assert body['access_all'] == 'block_all'

        fake_http.pages[DEVICE_LIST_URL] = build_page(new_devices='block_all')
        assert orchestrator.get_access_control_state().new_device_access.value == 'Blocked'

    def test_disable(self, orchestrator, fake_http):
        orchestrator.disable_access_control()

        body = fake_http.posts[0][2]
        assert 'enable_acl' not in body

        fake_http.pages[DEVICE_LIST_URL] = build_page(enabled=False)
        assert orchestrator.get_access_control_state().access_control.value == 'Disabled'


class TestBuildOrchestrator:
    """Test wiring from configuration."""

    def test_wiring(self, sample_page):
        config = RouterConfig(base_url='http://router.local/', username='admin', password='pw',
                              cache_ttl_minutes=2)
        fake_http = FakeHttpClient({DEVICE_LIST_URL: sample_page})

        orchestrator = build_orchestrator(
            config,
            known_devices=[KnownDevice('Laptop', 'AA:BB:CC:DD:EE:01')],
            http_client=fake_http,
        )

        assert orchestrator.page_client.cache_ttl_minutes == 2
        assert orchestrator.page_client.credential_provider.get().username == 'admin'
        assert orchestrator.find_device('AA:BB:CC:DD:EE:01').name == 'Laptop'

    def test_default_transport_from_config(self):
        config = RouterConfig(base_url='http://router.local', timeout=30, max_retries=1)
        orchestrator = build_orchestrator(config)
        transport = orchestrator.page_client.http_client
        assert transport.timeout == 30
        assert transport.max_retries == 1

    def test_close_releases_transport(self, orchestrator, fake_http):
        orchestrator.list_devices()
        orchestrator.close()

        assert fake_http.closed
        orchestrator.list_devices()
        assert len(fake_http.gets) == 2
