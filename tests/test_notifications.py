"""Push dispatch tests."""

import pytest
import requests

from delivery_hub.core.errors import NotificationError
from delivery_hub.services.notifications import ExpoPushDispatcher, LoggingPushDispatcher, status_message


class FakeResponse:
    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, status_code: int = 200, error: Exception | None = None) -> None:
        self.calls: list[dict] = []
        self.status_code = status_code
        self.error = error

    def post(self, url: str, json, headers, timeout):
        if self.error is not None:
            raise self.error
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        return FakeResponse(self.status_code)


def test_send_many_batches_by_one_hundred() -> None:
    session = FakeSession()
    dispatcher = ExpoPushDispatcher(push_url="https://push.test/send", timeout=3, session=session)
    tokens = [f"ExponentPushToken[{index}]" for index in range(250)]

    sent = dispatcher.send_many(tokens, "Nuevo pedido", "Pedido cerca", {"orderId": 1})

    assert sent == 250
    assert [len(call["json"]) for call in session.calls] == [100, 100, 50]
    assert session.calls[0]["url"] == "https://push.test/send"
    first = session.calls[0]["json"][0]
    assert first["to"] == "ExponentPushToken[0]"
    assert first["data"] == {"orderId": 1}
    assert first["priority"] == "high"


@pytest.mark.parametrize(
    "session",
    [FakeSession(status_code=500), FakeSession(error=requests.ConnectionError("offline"))],
)
def test_transport_failures_raise_notification_error(session: FakeSession) -> None:
    dispatcher = ExpoPushDispatcher(push_url="https://push.test/send", timeout=3, session=session)
    with pytest.raises(NotificationError):
        dispatcher.send_notification("ExponentPushToken[x]", "t", "b", {})


def test_logging_dispatcher_counts_tokens() -> None:
    assert LoggingPushDispatcher().send_many(["a", "b"], "t", "b", {}) == 2


def test_status_messages_are_localized() -> None:
    assert status_message("confirmed", "Pollería Central", 3) == (
        "Pedido confirmado",
        "Tu pedido en Pollería Central ha sido confirmado",
    )
    assert status_message("cancelled", None, 9)[1] == "El pedido #9 ha sido cancelado"
    assert status_message("weird", None, 1) == ("Actualización de pedido", "Estado: weird")
