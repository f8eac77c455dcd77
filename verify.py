"""
Smoke check against a running server:

    uvicorn app.main:app --port 8000
    python verify.py admin secret
"""

import urllib.request
import urllib.error
import json
import sys
import time

BASE_URL = "http://localhost:8000"


def make_request(method, url, data=None, token=None):
    req = urllib.request.Request(url, method=method)
    if data is not None:
        json_data = json.dumps(data).encode('utf-8')
        req.add_header('Content-Type', 'application/json')
        req.data = json_data
    if token:
        req.add_header('Authorization', f'Bearer {token}')

    try:
        with urllib.request.urlopen(req) as response:
            status_code = response.getcode()
            headers = response.info()
            response_body = response.read()

            if "application/json" in headers.get("Content-Type", ""):
                return status_code, json.loads(response_body.decode('utf-8')), headers
            return status_code, response_body, headers

    except urllib.error.HTTPError as e:
        return e.code, e.read().decode('utf-8'), None
    except urllib.error.URLError as e:
        return None, str(e), None


def wait_for_api():
    print("Waiting for API to be ready...")
    for _ in range(10):
        status, _, _ = make_request("GET", f"{BASE_URL}/health")
        if status == 200:
            return True
        time.sleep(1)
    return False


def authenticate(username, password):
    status, body, _ = make_request("GET", f"{BASE_URL}/api/auth/check-admin-exists")
    if status == 200 and not body["admin_exists"]:
        print(f"\n[POST] Registering admin {username}...")
        status, body, _ = make_request("POST", f"{BASE_URL}/api/auth/register",
                                       {"username": username, "password": password})
    else:
        print(f"\n[POST] Logging in as {username}...")
        status, body, _ = make_request("POST", f"{BASE_URL}/api/auth/login",
                                       {"username": username, "password": password})
    if status not in (200, 201):
        print(f"Failed. Status: {status}")
        print(body)
        return None
    return body["token"]


def run_smoke_flow(username, password):
    if not wait_for_api():
        print("API failed to start.")
        return 1

    token = authenticate(username, password)
    if not token:
        return 1

    # 1. Create Invoice
    payload = {
        "customer": {"name": "Acme Corp", "email": "billing@acme.example"},
        "items": [
            {"sequence_number": 1, "product_name": "Widget", "quantity": 2, "unit_price": 100},
            {"sequence_number": 2, "product_name": "Gadget", "quantity": 1, "unit_price": 50},
        ],
        "service_charge": {"kind": "percentage", "value": 10},
        "vat": {"kind": "fixed", "value": 20},
        "special_discount": 10,
    }

    print("\n[POST] Creating Invoice...")
    status, invoice, _ = make_request("POST", f"{BASE_URL}/api/invoices", payload, token)
    if status != 201:
        print(f"Failed. Status: {status}")
        print(invoice)
        return 1
    invoice_id = invoice["id"]
    print(f"Success! Created {invoice['invoice_number']} (id {invoice_id})")
    print(f"Subtotal {invoice['subtotal']}, grand total {invoice['grand_total']}, net total {invoice['net_total']}")
    if invoice["net_total"] != "285.00":
        print("ERROR: net total should be 285.00")

    # 2. Update Status
    print("\n[PATCH] Marking invoice as paid...")
    status, invoice, _ = make_request("PATCH", f"{BASE_URL}/api/invoices/{invoice_id}/status",
                                      {"payment_status": "paid"}, token)
    if status == 200:
        print(f"Success! New Status: {invoice['payment_status']}")
    else:
        print(f"Failed. Status: {status}")
        print(invoice)

    # 3. Get PDF
    print("\n[GET] Downloading PDF...")
    status, content, headers = make_request("GET", f"{BASE_URL}/api/invoices/{invoice_id}/pdf", token=token)
    if status == 200:
        print(f"Success! Content-Type: {headers.get('Content-Type')}, {len(content)} bytes")
        with open("test_invoice.pdf", "wb") as f:
            f.write(content)
        print("Saved to test_invoice.pdf")
    else:
        print(f"Failed. Status: {status}")
        print(content)

    # 4. Delete
    print("\n[DELETE] Removing invoice...")
    status, response, _ = make_request("DELETE", f"{BASE_URL}/api/invoices/{invoice_id}", token=token)
    print(f"Status {status}: {response}")
    return 0 if status == 200 else 1


if __name__ == "__main__":
    user = sys.argv[1] if len(sys.argv) > 1 else "admin"
    secret = sys.argv[2] if len(sys.argv) > 2 else "admin-password"
    sys.exit(run_smoke_flow(user, secret))
