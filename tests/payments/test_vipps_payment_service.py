import httpx
import pytest

from core.settings import VippsSettings
from domain.common.exceptions import (
    BusinessException,
    EmptyOrderException,
    HandlerNotConfiguredException,
    MissingConfigArgumentException,
    MissingCustomerException,
    MissingShippingMethodException,
    NoActiveOrderException,
)
from infrastructure.external.payments.exceptions import PaymentProviderError, PaymentTransportError
from shared.codes.payment_codes import PaymentCode

from conftest import DEFAULT_ARGS, make_order, make_payment_method


REQUIRED = ["host", "apiHost", "merchantSerialNumber", "clientId", "clientSecret", "subscriptionKey"]


@pytest.mark.asyncio
async def test_create_payment_intent_end_to_end(build_service, recorder, shop_ctx):
    recorder.responder = lambda r: httpx.Response(200, json={"orderId": "1", "url": "https://vipps.no/pay/abc"})
    service, deps = build_service(order=make_order())

    url = await service.create_payment_intent(shop_ctx)

    assert url == "https://vipps.no/pay/abc"
    assert deps["hydrator"].calls == [("lines", "customer", "shippingLines")]
    assert len(recorder.requests) == 1
    request = recorder.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/ecomm/v2/payments"
    assert request.url.host == "api.vipps.no"
    body = recorder.body()
    assert body["transaction"]["amount"] == 10000
    assert body["customerInfo"]["mobileNumber"] == "+4799999999"


@pytest.mark.asyncio
async def test_create_payment_intent_payload(build_service, recorder, shop_ctx):
    recorder.responder = lambda r: httpx.Response(200, json={"url": "https://vipps.no/pay/abc"})
    service, _ = build_service(order=make_order())

    await service.create_payment_intent(shop_ctx)

    body = recorder.body()
    assert body["merchantInfo"] == {
        "authToken": "",
        "callbackPrefix": "https://shop.example.com/vipps/callbacks-for-payment-updates",
        "fallBack": "https://shop.example.com/vipps/fallback-order-result-page/ORD-1",
        "consentRemovalPrefix": "https://shop.example.com/vipps/consent-removal",
        "isApp": False,
        "merchantSerialNumber": "123456",
        "paymentType": "eComm Regular Payment",
        "staticShippingDetails": [],
    }
    assert body["transaction"] == {
        "amount": 10000,
        "orderId": "1",
        "skipLandingPage": False,
        "scope": "name address email",
        "useExplicitCheckoutFlow": True,
        "additionalData": {"orderCode": "ORD-1", "channelToken": "channel-token"},
    }
    assert recorder.requests[0].headers["Merchant-Serial-Number"] == "123456"


@pytest.mark.asyncio
async def test_create_payment_intent_without_active_order(build_service, recorder, shop_ctx):
    service, deps = build_service(order=None)
    with pytest.raises(NoActiveOrderException):
        await service.create_payment_intent(shop_ctx)
    assert deps["hydrator"].calls == []
    assert recorder.requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "order_kwargs, expected",
    [
        ({"lines": 0}, EmptyOrderException),
        ({"lines": None}, EmptyOrderException),
        ({"with_customer": False}, MissingCustomerException),
        ({"shipping_lines": 0}, MissingShippingMethodException),
        ({"shipping_lines": None}, MissingShippingMethodException),
        # checked in order: lines before customer before shipping
        ({"lines": 0, "with_customer": False, "shipping_lines": 0}, EmptyOrderException),
        ({"with_customer": False, "shipping_lines": 0}, MissingCustomerException),
    ],
)
async def test_order_preconditions_fail_without_network(build_service, recorder, shop_ctx, order_kwargs, expected):
    service, deps = build_service(order=make_order(**order_kwargs))
    with pytest.raises(expected):
        await service.create_payment_intent(shop_ctx)
    assert recorder.requests == []
    assert deps["built"] == []


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", REQUIRED)
async def test_missing_config_argument_names_field(build_service, recorder, shop_ctx, missing):
    args = {k: v for k, v in DEFAULT_ARGS.items() if k != missing}
    service, deps = build_service(order=make_order(), methods=[make_payment_method(args)])

    with pytest.raises(MissingConfigArgumentException) as exc_info:
        await service.create_payment_intent(shop_ctx)

    assert exc_info.value.field_name == missing
    assert exc_info.value.field == missing
    assert deps["built"] == []
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_empty_config_argument_counts_as_missing(build_service, shop_ctx):
    service, deps = build_service(methods=[make_payment_method({**DEFAULT_ARGS, "clientSecret": "  "})])
    with pytest.raises(MissingConfigArgumentException) as exc_info:
        await service.resolve_config(shop_ctx)
    assert exc_info.value.field_name == "clientSecret"


@pytest.mark.asyncio
async def test_missing_config_arguments_reported_in_declaration_order(build_service, shop_ctx):
    args = {k: v for k, v in DEFAULT_ARGS.items() if k not in {"clientId", "subscriptionKey", "apiHost"}}
    service, _ = build_service(methods=[make_payment_method(args)])
    with pytest.raises(MissingConfigArgumentException) as exc_info:
        await service.resolve_config(shop_ctx)
    assert exc_info.value.field_name == "apiHost"
    assert exc_info.value.message == "Paymentmethod vipps-nok has no apiHost configured"


@pytest.mark.asyncio
async def test_handler_not_configured(build_service, recorder, shop_ctx):
    service, deps = build_service(order=make_order(), methods=[make_payment_method(handler_code="stripe")])
    with pytest.raises(HandlerNotConfiguredException):
        await service.create_payment_intent(shop_ctx)
    assert deps["built"] == []
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_resolve_config_picks_vipps_method(build_service, shop_ctx):
    methods = [
        make_payment_method(handler_code="dummy", code="dummy"),
        make_payment_method(code="vipps-main"),
    ]
    service, _ = build_service(methods=methods)

    config = await service.resolve_config(shop_ctx)

    assert config.method_code == "vipps-main"
    assert config.api_host == "https://api.vipps.no"
    assert config.subscription_key == "sub-key"
    assert "client-secret" not in repr(config)


@pytest.mark.asyncio
async def test_provider_error_propagates_unchanged(build_service, recorder, shop_ctx):
    recorder.responder = lambda r: httpx.Response(200, json={"error": {"message": "Invalid MSN"}})
    service, _ = build_service(order=make_order())
    with pytest.raises(PaymentProviderError) as exc_info:
        await service.create_payment_intent(shop_ctx)
    assert exc_info.value.message == "Invalid MSN"


@pytest.mark.asyncio
async def test_missing_url_in_response(build_service, recorder, shop_ctx):
    recorder.responder = lambda r: httpx.Response(200, json={"orderId": "1"})
    service, _ = build_service(order=make_order())
    with pytest.raises(BusinessException) as exc_info:
        await service.create_payment_intent(shop_ctx)
    assert exc_info.value.error_type == "PaymentProviderError"


@pytest.mark.asyncio
async def test_settle_payment_captures_total(build_service, recorder, shop_ctx):
    recorder.responder = lambda r: httpx.Response(200, json={"transactionInfo": {"status": "Captured"}})
    service, _ = build_service(order=make_order(total=25000))

    assert await service.settle_payment(shop_ctx) is None

    request = recorder.requests[0]
    assert (request.method, request.url.path) == ("POST", "/ecomm/v2/payments/1/capture")
    assert recorder.body() == {
        "merchantInfo": {"merchantSerialNumber": "123456"},
        "transaction": {"amount": 25000, "orderId": "1"},
    }


@pytest.mark.asyncio
async def test_settle_payment_checks_config_before_order(build_service, shop_ctx):
    service, deps = build_service(order=None, methods=[])
    with pytest.raises(HandlerNotConfiguredException):
        await service.settle_payment(shop_ctx)
    assert deps["orders"].calls == 0


@pytest.mark.asyncio
async def test_settle_payment_without_active_order(build_service, recorder, shop_ctx):
    service, _ = build_service(order=None)
    with pytest.raises(NoActiveOrderException):
        await service.settle_payment(shop_ctx)
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_settle_payment_transport_failure_propagates(build_service, recorder, shop_ctx):
    recorder.responder = lambda r: httpx.Response(503)
    service, _ = build_service(order=make_order())
    with pytest.raises(PaymentTransportError):
        await service.settle_payment(shop_ctx)


@pytest.mark.asyncio
async def test_create_refund_returns_raw_result(build_service, recorder, shop_ctx):
    provider_body = {"orderId": "1", "transaction": {"amount": 10000, "status": "Refund"}}
    recorder.responder = lambda r: httpx.Response(200, json=provider_body)
    service, _ = build_service()

    result = await service.create_refund(shop_ctx, make_order())

    assert result == provider_body
    assert recorder.requests[0].url.path == "/ecomm/v2/payments/1/refund"
    assert recorder.body()["transaction"]["amount"] == 10000


@pytest.mark.asyncio
async def test_create_refund_without_order(build_service, recorder, shop_ctx):
    service, _ = build_service()
    with pytest.raises(NoActiveOrderException):
        await service.create_refund(shop_ctx, None)
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_cancel_payment(build_service, recorder, shop_ctx):
    service, _ = build_service()
    await service.cancel_payment(shop_ctx, make_order(), release_remaining_funds=True)

    request = recorder.requests[0]
    assert (request.method, request.url.path) == ("PUT", "/ecomm/v2/payments/1/cancel")
    assert recorder.body()["shouldReleaseRemainingFunds"] is True


@pytest.mark.asyncio
async def test_get_payment_status_uses_latest_successful_operation(build_service, recorder, shop_ctx):
    details = {
        "orderId": "1",
        "transactionLogHistory": [
            {"operation": "CAPTURE", "operationSuccess": False, "amount": 10000, "timeStamp": "2024-01-01T10:02:00Z"},
            {"operation": "RESERVE", "operationSuccess": True, "amount": 10000, "transactionId": "5001", "timeStamp": "2024-01-01T10:01:00Z"},
            {"operation": "INITIATE", "operationSuccess": True, "amount": 10000, "timeStamp": "2024-01-01T10:00:00Z"},
        ],
    }
    recorder.responder = lambda r: httpx.Response(200, json=details)
    service, _ = build_service()

    status = await service.get_payment_status(shop_ctx, make_order())

    assert recorder.requests[0].method == "GET"
    assert recorder.requests[0].url.path == "/ecomm/v2/payments/1/details"
    assert status.status == "authorized"
    assert status.provider_operation == "RESERVE"
    assert status.transaction_id == "5001"
    assert status.raw == details


@pytest.mark.asyncio
async def test_get_payment_status_without_history(build_service, recorder, shop_ctx):
    recorder.responder = lambda r: httpx.Response(200, json={"orderId": "1"})
    service, _ = build_service()
    status = await service.get_payment_status(shop_ctx, make_order())
    assert status.status == "unknown"
    assert status.provider_operation is None


@pytest.mark.asyncio
async def test_get_payment_status_rejects_non_object_body(build_service, recorder, shop_ctx):
    recorder.responder = lambda r: httpx.Response(200, json=[{"errorCode": "x"}])
    service, _ = build_service()

    with pytest.raises(BusinessException) as exc_info:
        await service.get_payment_status(shop_ctx, make_order())

    assert exc_info.value.code == PaymentCode.PROVIDER_ERROR
    assert exc_info.value.error_type == "PaymentProviderError"


@pytest.mark.asyncio
async def test_get_payment_status_skips_malformed_history_entries(build_service, recorder, shop_ctx):
    details = {
        "orderId": "1",
        "transactionLogHistory": ["garbage", None, {"operation": "CAPTURE", "amount": 10000, "timeStamp": "2024-01-01T10:00:00Z"}],
    }
    recorder.responder = lambda r: httpx.Response(200, json=details)
    service, _ = build_service()

    status = await service.get_payment_status(shop_ctx, make_order())

    assert status.status == "settled"
    assert status.amount == 10000


@pytest.mark.asyncio
async def test_request_access_token(build_service, recorder, shop_ctx):
    recorder.responder = lambda r: httpx.Response(200, json={"access_token": "tok"})
    service, _ = build_service()
    assert await service.request_access_token(shop_ctx) == {"access_token": "tok"}
    assert recorder.requests[0].headers["client_id"] == "client-id"


@pytest.mark.asyncio
async def test_repeated_action_reuses_idempotency_key(build_service, recorder, shop_ctx):
    # A timeout followed by a caller-level retry must not become a second payment action
    recorder.responder = lambda r: httpx.Response(200, json={"url": "https://vipps.no/pay/abc"})
    service, _ = build_service(order=make_order())

    await service.create_payment_intent(shop_ctx)
    await service.create_payment_intent(shop_ctx)
    await service.settle_payment(shop_ctx)

    keys = [r.headers.get("X-Request-Id") for r in recorder.requests]
    assert keys[0] == keys[1]
    assert len(keys[0]) == 64
    assert keys[2] != keys[0]


@pytest.mark.asyncio
async def test_idempotency_key_can_be_disabled(build_service, recorder, shop_ctx):
    recorder.responder = lambda r: httpx.Response(200, json={"url": "https://vipps.no/pay/abc"})
    service, _ = build_service(order=make_order(), vipps_settings=VippsSettings(send_idempotency_key=False))

    await service.create_payment_intent(shop_ctx)

    assert "X-Request-Id" not in recorder.requests[0].headers


@pytest.mark.asyncio
async def test_merchant_serial_header_follows_settings(build_service, recorder, shop_ctx):
    recorder.responder = lambda r: httpx.Response(200, json={"url": "https://vipps.no/pay/abc"})
    legacy = VippsSettings(merchant_serial_header_source="subscription_key")
    service, _ = build_service(order=make_order(), vipps_settings=legacy)

    await service.create_payment_intent(shop_ctx)

    assert recorder.requests[0].headers["Merchant-Serial-Number"] == "sub-key"
    assert recorder.body()["merchantInfo"]["merchantSerialNumber"] == "123456"


@pytest.mark.asyncio
async def test_changed_initiation_payload_gets_new_idempotency_key(build_service, recorder, shop_ctx):
    recorder.responder = lambda r: httpx.Response(200, json={"url": "https://vipps.no/pay/abc"})
    service, deps = build_service(order=make_order(phone="+4700000000"))
    await service.create_payment_intent(shop_ctx)

    deps["orders"].order = make_order(phone="+4799999999")
    await service.create_payment_intent(shop_ctx)

    first, second = (r.headers["X-Request-Id"] for r in recorder.requests)
    assert first != second


@pytest.mark.asyncio
async def test_bare_shop_host_gets_https_scheme(build_service, recorder, shop_ctx):
    recorder.responder = lambda r: httpx.Response(200, json={"url": "https://vipps.no/pay/abc"})
    args = {**DEFAULT_ARGS, "host": "ww.vipps.no/"}
    service, _ = build_service(order=make_order(), methods=[make_payment_method(args)])

    await service.create_payment_intent(shop_ctx)

    merchant_info = recorder.body()["merchantInfo"]
    assert merchant_info["callbackPrefix"] == "https://ww.vipps.no/vipps/callbacks-for-payment-updates"
    assert merchant_info["fallBack"] == "https://ww.vipps.no/vipps/fallback-order-result-page/ORD-1"


@pytest.mark.asyncio
async def test_settle_payment_rejected_by_empty_error_object(build_service, recorder, shop_ctx):
    recorder.responder = lambda r: httpx.Response(200, json={"error": {}})
    service, _ = build_service(order=make_order())
    with pytest.raises(PaymentProviderError):
        await service.settle_payment(shop_ctx)
