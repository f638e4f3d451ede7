import logging

from backend import DataStoreError

log = logging.getLogger(__name__)


class LandingScreen:
    """Public listing of the profiles table."""

    def __init__(self, client):
        self.client = client
        self.profiles = []
        self.loading = True
        self.error = None

    def mount(self) -> None:
        self.loading = True
        self.error = None
        try:
            response = self.client.table('profiles').select('*').execute()
        except DataStoreError as exc:
            log.error('Error fetching profiles: %s', exc.message)
            self.error = exc.message
        else:
            log.debug('Fetched %d profiles', response.count)
            self.profiles = response.data
        self.loading = False
