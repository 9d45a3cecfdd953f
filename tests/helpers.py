"""Request helpers shared by the HTTP tests"""


def refresh_cookie(response, name="refreshToken"):
    for header in response.headers.getlist("Set-Cookie"):
        if header.startswith(f"{name}="):
            return header
    return None


def cookie_value(header):
    return header.split(";", 1)[0].split("=", 1)[1]


def register(client, name="A", email="a@x.com", password="secret123", **extra):
    return client.post("/api/register", json={"name": name, "email": email, "password": password, **extra})


def login(client, email="a@x.com", password="secret123"):
    return client.post("/api/login", json={"email": email, "password": password})
