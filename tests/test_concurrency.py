from __future__ import annotations

import threading
import time

import pytest

from dispatch import CarMode, Direction, TickDriver


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


class TestConcurrentCallers:

    def test_every_request_is_served_exactly_once(self, make_controller, served_log, check_invariants):
        controller = make_controller(num_floors=10, start_floors=[0, 3, 6, 9], door_dwell_ticks=1)
        served = served_log(controller)
        submitted = []
        submitted_lock = threading.Lock()
        driver = TickDriver(controller, interval=0.001)

        def caller(offset):
            for index in range(25):
                floor = (offset + index) % 9
                request = controller.request_elevator(floor, Direction.UP)
                with submitted_lock:
                    submitted.append(request.request_id)
                if index % 5 == 0:
                    controller.select_destination(index % 4, 9)

        threads = [threading.Thread(target=caller, args=(n,)) for n in range(4)]
        driver.start()
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        driver.stop(timeout=5)

        for _ in range(500):
            if len(served) == len(submitted):
                break
            controller.tick()

        served_ids = [event["request"].request_id for event in served]
        assert len(served_ids) == len(set(served_ids))
        assert sorted(served_ids) == sorted(submitted)
        assert controller.pending_requests() == ()
        check_invariants(controller)

    def test_emergency_signal_from_another_thread(self, make_controller):
        controller = make_controller(num_floors=10, start_floors=[0, 0])
        controller.select_destination(0, 9)
        driver = TickDriver(controller, interval=0.001)
        driver.start()
        try:
            signaller = threading.Thread(target=controller.trigger_emergency, args=(0,))
            signaller.start()
            signaller.join()
            assert wait_for(lambda: controller.car_status(0).mode is CarMode.EMERGENCY)
        finally:
            driver.stop(timeout=5)
        assert controller.car_status(1).mode is CarMode.IDLE


class TestTickDriver:

    def test_start_and_stop(self, make_controller):
        controller = make_controller()
        driver = TickDriver(controller, interval=0.001)
        driver.start()
        driver.start()
        assert driver.running
        assert wait_for(lambda: controller.current_time >= 3)
        driver.stop(timeout=5)
        driver.stop(timeout=5)
        assert not driver.running

        stopped_at = controller.current_time
        time.sleep(0.02)
        assert controller.current_time == stopped_at

    def test_interval_must_be_positive(self, make_controller):
        with pytest.raises(ValueError):
            TickDriver(make_controller(), interval=0)
