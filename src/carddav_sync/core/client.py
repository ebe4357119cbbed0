import logging
import threading
from urllib.parse import quote, urljoin, urlparse
from xml.etree import ElementTree

import requests

from ..config import Config
from ..exceptions import RemoteFetchError
from ..sync.models import Contact
from ..validators import validate_uid
from .vcard import build_vcard, parse_vcard

logger = logging.getLogger(__name__)

NS = {"d": "DAV:", "c": "urn:ietf:params:xml:ns:carddav"}

MULTI_STATUS = 207

_PROPFIND_CONTACTS = (
    '<?xml version="1.0" encoding="utf-8"?>'
    '<d:propfind xmlns:d="DAV:" xmlns:c="urn:ietf:params:xml:ns:carddav">'
    "<d:prop><d:getetag/><c:address-data/></d:prop>"
    "</d:propfind>"
)

_PROPFIND_RESOURCETYPE = (
    '<?xml version="1.0" encoding="utf-8"?>'
    '<d:propfind xmlns:d="DAV:">'
    "<d:prop><d:resourcetype/></d:prop>"
    "</d:propfind>"
)


class CardDAVClient:
    """Blocking CardDAV client for a single address book collection."""

    def __init__(self, config: Config):
        self.config = config
        self._thread_local = threading.local()
        self.addressbook_url = self._get_addressbook_url()

    @property
    def session(self) -> requests.Session:
        """The current thread's session."""
        return self._get_session()

    def _get_addressbook_url(self) -> str:
        return self.config.server_url.rstrip("/") + "/"

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.auth = (self.config.username, self.config.password)
        session.verify = not self.config.insecure
        return session

    def _request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        data: str | None = None,
    ) -> requests.Response:
        """Send one HTTP request, translating transport errors.

        Raises:
            RemoteFetchError: On connection errors and timeouts.
        """
        logger.debug("%s %s", method, url)
        try:
            response = self._get_session().request(
                method,
                url,
                headers=headers or {},
                data=data.encode("utf-8") if data is not None else None,
                timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            raise RemoteFetchError(f"{method} {url} failed: {exc}") from exc
        logger.debug("%s %s -> %s", method, url, response.status_code)
        return response

    def _propfind(self, depth: str, body: str) -> requests.Response:
        response = self._request(
            "PROPFIND",
            self.addressbook_url,
            headers={
                "Depth": depth,
                "Content-Type": "application/xml; charset=utf-8",
            },
            data=body,
        )
        if response.status_code != MULTI_STATUS:
            raise RemoteFetchError(
                f"PROPFIND {self.addressbook_url} returned HTTP "
                f"{response.status_code}, expected {MULTI_STATUS}"
            )
        return response

    def full_url(self, href: str) -> str:
        """Resolve an href from a multistatus response against the address book."""
        return urljoin(self.addressbook_url, href)

    def test_connection(self) -> None:
        """
        Check that the address book answers PROPFIND with 207 Multi-Status.

        Raises:
            RemoteFetchError: If the server is unreachable or answers otherwise.
        """
        self._propfind("0", _PROPFIND_RESOURCETYPE)
        logger.info("Connected to address book %s", self.addressbook_url)

    def fetch_contacts(self) -> list[Contact]:
        """
        Fetch every contact in the address book.

        Resources are listed with one PROPFIND (Depth 1) that asks for the
        vCard inline; resources whose response carries no address data are
        fetched individually with GET.  vCards that cannot be parsed or lack
        UID/FN are dropped.

        Raises:
            RemoteFetchError: On transport failure, non-207 status or a
                malformed multistatus body.
        """
        response = self._propfind("1", _PROPFIND_CONTACTS)
        try:
            root = ElementTree.fromstring(response.content)
        except ElementTree.ParseError as exc:
            raise RemoteFetchError(
                f"Malformed PROPFIND response from {self.addressbook_url}: {exc}"
            ) from exc

        collection_path = urlparse(self.addressbook_url).path
        contacts: list[Contact] = []
        for entry in root.findall("d:response", NS):
            href = (entry.findtext("d:href", default="", namespaces=NS) or "").strip()
            # The collection itself and sub-collections end with '/'
            if not href or href.endswith("/") or href == collection_path.rstrip("/"):
                continue

            vcard_data = entry.findtext(
                "d:propstat/d:prop/c:address-data", default="", namespaces=NS
            )
            if not vcard_data or not vcard_data.strip():
                vcard_data = self._get_vcard(href)
                if vcard_data is None:
                    continue

            contact = parse_vcard(vcard_data)
            if contact is not None:
                contacts.append(contact)

        logger.info(
            "Fetched %d contacts from %s", len(contacts), self.addressbook_url
        )
        return contacts

    def _get_vcard(self, href: str) -> str | None:
        """GET a single vCard; a failed status drops just this resource."""
        url = self.full_url(href)
        response = self._request("GET", url)
        if response.status_code != 200:
            logger.warning(
                "Dropping %s: GET returned HTTP %s", url, response.status_code
            )
            return None
        return response.text

    def create_contact(self, contact: Contact) -> None:
        """
        Store a new contact as ``<addressbook>/<uid>.vcf``.

        Only uid, full name, email and phone are sent.  ``If-None-Match: *``
        makes the server refuse to overwrite an existing resource.

        Raises:
            RemoteFetchError: If the uid cannot be used as a resource name,
                or the request fails or is rejected.
        """
        is_valid, error = validate_uid(contact.uid)
        if not is_valid:
            raise RemoteFetchError(error)

        # quote() keeps uids such as "urn:uuid:..." from parsing as a scheme
        url = self.full_url(quote(contact.uid, safe="") + ".vcf")
        response = self._request(
            "PUT",
            url,
            headers={
                "Content-Type": "text/vcard; charset=utf-8",
                "If-None-Match": "*",
            },
            data=build_vcard(contact),
        )
        if response.status_code not in (200, 201, 204):
            raise RemoteFetchError(
                f"PUT {url} returned HTTP {response.status_code}"
            )
        logger.info("Created remote contact %s", contact.uid)
