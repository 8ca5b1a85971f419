"""Unit tests for peer configuration reconciliation."""

import pytest

from common.types import Peer
from mover.reconciler import (
    desired_device_ids,
    device_name_for,
    needs_reconfigure,
    update_devices,
    update_folders,
)
from mover.syncthing.models import SyncthingConfig, SyncthingDevice

from tests.fakes import PEER_A, PEER_B, PEER_C, SELF_ID, config_payload, device_payload


def devices(*device_ids):
    return [SyncthingDevice.model_validate(device_payload(device_id)) for device_id in device_ids]


def ids(items):
    return [item.device_id for item in items]


class TestDesiredDeviceIds:
    """Tests for desired_device_ids."""

    def test_excludes_self_and_pending(self):
        peers = [Peer(id=PEER_A), Peer(id=SELF_ID), Peer(id="", address="tcp://10.0.0.9:22000")]

        assert desired_device_ids(peers, SELF_ID) == {PEER_A}

    def test_collapses_duplicates(self):
        peers = [Peer(id=PEER_A), Peer(id=PEER_A, address="tcp://10.0.0.1:22000")]

        assert desired_device_ids(peers, SELF_ID) == {PEER_A}


class TestNeedsReconfigure:
    """Tests for needs_reconfigure."""

    def test_converged_config_needs_nothing(self):
        current = devices(SELF_ID, PEER_A, PEER_B)
        peers = [Peer(id=PEER_B), Peer(id=PEER_A)]

        assert needs_reconfigure(current, peers, SELF_ID) is False

    def test_ignores_unrelated_fields_and_order(self):
        current = [
            SyncthingDevice.model_validate(device_payload(PEER_B, name="custom", compression="always")),
            SyncthingDevice.model_validate(device_payload(PEER_A, addresses=["tcp://1.2.3.4:22000"])),
        ]
        peers = [Peer(id=PEER_A, address="tcp://9.9.9.9:22000"), Peer(id=PEER_B)]

        assert needs_reconfigure(current, peers, SELF_ID) is False

    def test_missing_peer(self):
        assert needs_reconfigure(devices(SELF_ID, PEER_A), [Peer(id=PEER_A), Peer(id=PEER_B)], SELF_ID) is True

    def test_extraneous_device(self):
        assert needs_reconfigure(devices(SELF_ID, PEER_A, PEER_C), [Peer(id=PEER_A)], SELF_ID) is True

    def test_self_in_desired_list_is_ignored(self):
        current = devices(SELF_ID, PEER_A)
        peers = [Peer(id=SELF_ID), Peer(id=PEER_A)]

        assert needs_reconfigure(current, peers, SELF_ID) is False

    def test_self_device_absent_is_not_a_difference(self):
        assert needs_reconfigure(devices(PEER_A), [Peer(id=PEER_A)], SELF_ID) is False

    def test_pending_peer_is_ignored(self):
        current = devices(SELF_ID, PEER_A)
        peers = [Peer(id=PEER_A), Peer(id="", address="tcp://10.0.0.5:22000")]

        assert needs_reconfigure(current, peers, SELF_ID) is False

    def test_empty_desired_with_only_self(self):
        assert needs_reconfigure(devices(SELF_ID), [], SELF_ID) is False

    def test_empty_desired_with_remote_devices(self):
        assert needs_reconfigure(devices(SELF_ID, PEER_A), [], SELF_ID) is True

    def test_repeated_device_entry(self):
        assert needs_reconfigure(devices(SELF_ID, PEER_A, PEER_A), [Peer(id=PEER_A)], SELF_ID) is True


class TestUpdateDevices:
    """Tests for update_devices."""

    def test_adds_missing_and_removes_extraneous(self):
        current = devices(SELF_ID, PEER_A, PEER_C)
        peers = [Peer(id=PEER_A), Peer(id=PEER_B, address="tcp://10.0.0.2:22000"), Peer(id="")]

        updated = update_devices(current, peers, SELF_ID)

        assert ids(updated) == [SELF_ID, PEER_A, PEER_B]
        new_device = updated[2]
        assert new_device.addresses == ["tcp://10.0.0.2:22000"]
        assert new_device.name == device_name_for(Peer(id=PEER_B))

    def test_retained_devices_are_untouched(self):
        retained = SyncthingDevice.model_validate(
            device_payload(PEER_A, name="site-a", addresses=["tcp://1.1.1.1:22000"], maxRecvKbps=500)
        )
        self_device = SyncthingDevice.model_validate(device_payload(SELF_ID, name="me"))

        updated = update_devices(
            [self_device, retained],
            [Peer(id=PEER_A, address="tcp://2.2.2.2:22000")],
            SELF_ID
        )

        assert updated[0] is self_device
        assert updated[1] is retained
        assert updated[1].addresses == ["tcp://1.1.1.1:22000"]
        assert updated[1].to_payload()["maxRecvKbps"] == 500

    def test_self_never_added(self):
        updated = update_devices(devices(PEER_A), [Peer(id=SELF_ID), Peer(id=PEER_A)], SELF_ID)

        assert ids(updated) == [PEER_A]

    def test_duplicates_collapse(self):
        peers = [Peer(id=PEER_B, address="tcp://10.0.0.2:22000"), Peer(id=PEER_B, address="tcp://10.0.0.3:22000")]

        updated = update_devices(devices(SELF_ID), peers, SELF_ID)

        assert ids(updated) == [SELF_ID, PEER_B]
        assert updated[1].addresses == ["tcp://10.0.0.2:22000"]

    def test_repeated_current_device_keeps_first_entry(self):
        first = SyncthingDevice.model_validate(device_payload(PEER_A, name="first"))
        second = SyncthingDevice.model_validate(device_payload(PEER_A, name="second"))

        updated = update_devices([first, second], [Peer(id=PEER_A)], SELF_ID)

        assert updated == [first]
        assert updated[0] is first

    def test_empty_address_becomes_dynamic(self):
        updated = update_devices([], [Peer(id=PEER_A)], SELF_ID)

        assert updated[0].addresses == ["dynamic"]

    def test_introducer_flag_copied(self):
        updated = update_devices([], [Peer(id=PEER_A, introducer=True)], SELF_ID)

        assert updated[0].introducer is True

    def test_empty_desired_keeps_only_self(self):
        updated = update_devices(devices(SELF_ID, PEER_A, PEER_B), [], SELF_ID)

        assert ids(updated) == [SELF_ID]

    def test_new_device_serializes_with_wire_names(self):
        updated = update_devices([], [Peer(id=PEER_A, address="tcp://10.0.0.1:22000")], SELF_ID)

        payload = updated[0].to_payload()
        assert payload["deviceID"] == PEER_A
        assert payload["addresses"] == ["tcp://10.0.0.1:22000"]


class TestUpdateFolders:
    """Tests for update_folders."""

    def test_share_list_matches_devices(self):
        config = SyncthingConfig.model_validate(config_payload([SELF_ID, PEER_A, PEER_C]))
        new_devices = update_devices(config.devices, [Peer(id=PEER_A), Peer(id=PEER_B)], SELF_ID)

        folders = update_folders(config.folders, new_devices, SELF_ID)

        assert set(ids(folders[0].devices)) == {SELF_ID, PEER_A, PEER_B}

    def test_keeps_existing_share_entry_fields(self):
        payload = config_payload([SELF_ID, PEER_A])
        payload["folders"][0]["devices"][1]["encryptionPassword"] = "hunter2"
        config = SyncthingConfig.model_validate(payload)

        folders = update_folders(config.folders, config.devices, SELF_ID)

        shared = folders[0].to_payload()["devices"]
        assert shared[1] == {"deviceID": PEER_A, "introducedBy": "", "encryptionPassword": "hunter2"}

    def test_other_folder_fields_untouched(self):
        config = SyncthingConfig.model_validate(config_payload([SELF_ID], shared_ids=[]))

        folders = update_folders(config.folders, devices(SELF_ID, PEER_A), SELF_ID)

        payload = folders[0].to_payload()
        assert payload["id"] == "data-folder"
        assert payload["type"] == "sendreceive"
        assert payload["rescanIntervalS"] == 3600
        assert [entry["deviceID"] for entry in payload["devices"]] == [SELF_ID, PEER_A]

    def test_removed_devices_unshared(self):
        config = SyncthingConfig.model_validate(config_payload([SELF_ID, PEER_A, PEER_C]))

        folders = update_folders(config.folders, devices(SELF_ID), SELF_ID)

        assert ids(folders[0].devices) == [SELF_ID]

    def test_does_not_mutate_input(self):
        config = SyncthingConfig.model_validate(config_payload([SELF_ID, PEER_A]))

        update_folders(config.folders, devices(SELF_ID), SELF_ID)

        assert ids(config.folders[0].devices) == [SELF_ID, PEER_A]

    def test_self_shared_when_not_a_device(self):
        config = SyncthingConfig.model_validate(config_payload([PEER_A, PEER_C], shared_ids=[PEER_C]))

        folders = update_folders(config.folders, update_devices(config.devices, [], SELF_ID), SELF_ID)

        assert ids(folders[0].devices) == [SELF_ID]

    def test_self_placed_first_when_missing(self):
        config = SyncthingConfig.model_validate(config_payload([PEER_A]))

        folders = update_folders(config.folders, devices(PEER_A, PEER_B), SELF_ID)

        assert ids(folders[0].devices) == [SELF_ID, PEER_A, PEER_B]

    def test_every_folder_rewritten(self):
        payload = config_payload([SELF_ID, PEER_A])
        second = dict(payload["folders"][0], id="other-folder", devices=[])
        payload["folders"].append(second)
        config = SyncthingConfig.model_validate(payload)

        folders = update_folders(config.folders, config.devices, SELF_ID)

        for folder in folders:
            assert ids(folder.devices) == [SELF_ID, PEER_A]


@pytest.mark.parametrize("current_ids,peer_ids", [
    ([SELF_ID, PEER_A, PEER_C], [PEER_A, PEER_B, ""]),
    ([PEER_C], [SELF_ID]),
    ([SELF_ID], [PEER_A, PEER_A, PEER_B]),
    ([SELF_ID, PEER_A, PEER_A, PEER_C, PEER_C], [PEER_A]),
])
def test_update_converges(current_ids, peer_ids):
    """After updating, the device list no longer needs reconfiguration."""
    peers = [Peer(id=peer_id) for peer_id in peer_ids]

    updated = update_devices(devices(*current_ids), peers, SELF_ID)

    assert needs_reconfigure(updated, peers, SELF_ID) is False
