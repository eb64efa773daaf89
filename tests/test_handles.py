from lingze.handles import UniqueHandle


class FakeResource:
    def __init__(self):
        self.resets = 0

    def reset(self):
        self.resets += 1


def test_default_handle_is_detached():
    handle = UniqueHandle()
    assert handle.is_attached is False
    assert handle.info is None


def test_handle_with_info_is_attached():
    res = FakeResource()
    handle = UniqueHandle(res)
    assert handle.is_attached is True
    assert handle.info is res


def test_close_releases_once():
    res = FakeResource()
    handle = UniqueHandle(res)
    handle.close()
    handle.close()
    assert res.resets == 1
    assert handle.is_attached is False


def test_detach_prevents_release():
    res = FakeResource()
    handle = UniqueHandle(res)
    handle.detach()
    handle.close()
    assert res.resets == 0


def test_reset_always_destroys():
    res = FakeResource()
    handle = UniqueHandle(res)
    handle.reset()
    assert res.resets == 1
    assert handle.is_attached is False


def test_take_moves_ownership():
    res = FakeResource()
    first = UniqueHandle(res)
    second = first.take()
    assert first.is_attached is False
    assert second.is_attached is True
    first.close()
    assert res.resets == 0
    second.close()
    assert res.resets == 1


def test_take_of_detached_stays_detached():
    res = FakeResource()
    first = UniqueHandle(res, attached=False)
    second = first.take()
    assert second.is_attached is False


def test_context_manager_releases():
    res = FakeResource()
    with UniqueHandle(res) as handle:
        assert handle.info is res
    assert res.resets == 1