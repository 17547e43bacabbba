PASSWORD = "secret1"


def register(client, name="A", email="a@x.com", password=PASSWORD):
    return client.post("/auth/register", json={"name": name, "email": email, "password": password})


def login(client, email="a@x.com", password=PASSWORD):
    return client.post("/auth/login", json={"email": email, "password": password})


def bearer(token):
    return {"Authorization": f"Bearer {token}"}
