import pytest

from skola_media.infrastructure.adapters.cloud_storage_proxy import CloudFunctionStorageProxy


class RecordingClient:
    def __init__(self, result=None):
        self.result = result if result is not None else {"success": True, "data": {}}
        self.calls = []

    async def run(self, name, params, *, timeout=None):
        self.calls.append((name, params, timeout))
        return self.result


@pytest.mark.adapters
@pytest.mark.asyncio
async def test_upload_object_payload_keys():
    client = RecordingClient()
    resp = await CloudFunctionStorageProxy(client).upload_object("k", "data:...", "image/jpeg")
    assert resp.success
    name, params, _ = client.calls[0]
    assert name == "uploadAWSS3Object"
    assert params == {"objectKey": "k", "imageBase64": "data:...", "contentType": "image/jpeg"}


@pytest.mark.adapters
@pytest.mark.asyncio
async def test_signed_url_function_names():
    client = RecordingClient()
    proxy = CloudFunctionStorageProxy(client)
    await proxy.get_signed_url("k")
    await proxy.get_signed_url_legacy("k")
    assert [c[0] for c in client.calls] == ["getAWSS3SignedUrl", "getOLDAWSS3SignedUrl"]


@pytest.mark.adapters
@pytest.mark.asyncio
async def test_multipart_calls():
    client = RecordingClient()
    proxy = CloudFunctionStorageProxy(client)
    await proxy.initiate_multipart_upload("v", "video/mp4")
    await proxy.upload_part("v", "u1", 2, "data:video/mp4;base64,AA==", "video/mp4")
    await proxy.complete_multipart_upload(
        "v", "u1", [{"PartNumber": 1, "ETag": "a"}, {"PartNumber": 2, "ETag": "b"}]
    )
    await proxy.abort_multipart_upload("v", "u1")

    names = [c[0] for c in client.calls]
    assert names == [
        "initiateMultipartUpload",
        "uploadPart",
        "completeMultipartUpload",
        "abortMultipartUpload",
    ]
    assert client.calls[1][1] == {
        "objectKey": "v",
        "uploadId": "u1",
        "partNumber": 2,
        "data": "data:video/mp4;base64,AA==",
        "contentType": "video/mp4",
    }
    assert client.calls[2][1] == {
        "objectKey": "v",
        "uploadId": "u1",
        "parts": [{"PartNumber": 1, "ETag": "a"}, {"PartNumber": 2, "ETag": "b"}],
    }


@pytest.mark.adapters
@pytest.mark.asyncio
async def test_error_envelope_is_parsed():
    client = RecordingClient({"success": False, "error": {"code": "NOT_FOUND", "message": "x"}})
    resp = await CloudFunctionStorageProxy(client).get_signed_url("k")
    assert resp.success is False
    assert resp.error_code == "NOT_FOUND"


@pytest.mark.adapters
@pytest.mark.asyncio
async def test_no_result_means_no_response():
    class NoneClient(RecordingClient):
        async def run(self, name, params, *, timeout=None):
            return None

    assert await CloudFunctionStorageProxy(NoneClient()).get_signed_url("k") is None
