def signup(client, email='ana@example.com', password='secret123'):
    return client.post('/auth', data={'email': email, 'password': password, 'action': 'signup'})


def login(client, email='ana@example.com', password='secret123'):
    return client.post('/auth', data={'email': email, 'password': password, 'action': 'login'})
