from typing import Optional, Dict, Any, List, Union
from fastapi.testclient import TestClient

from app.core.security import create_access_token

def auth_headers(user) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}

def api_call(client: TestClient, method: str, path: str, headers: Optional[Dict[str, str]] = None, json: Optional[Union[Dict[str, Any], List[Any]]] = None, expected_min: int = 200, expected_max: int = 300):
    response = client.request(method, path, headers=headers, json=json)
    ok = expected_min <= response.status_code < expected_max
    try:
        body = response.json()
    except Exception:
        body = response.text
    assert ok, f"{method} {path} => {response.status_code}, body={body}, json={json}"
    return response

def assert_error(response, status_code: int, message: Optional[str] = None):
    assert response.status_code == status_code, response.text
    body = response.json()
    assert body["success"] is False
    if message is not None:
        assert body["message"] == message
    return body
