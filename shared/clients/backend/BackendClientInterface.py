from abc import abstractmethod
from shared.helper.HelperConfig import HelperConfig
from shared.clients.ClientInterface import ClientInterface
from shared.models.chat import ChatCompletionRequest, ChatMessageRecord, ChatRole
from shared.models.document import DocumentRecord, UploadFile
from shared.models.errors import ApiError
from shared.models.search import SearchQuery, SearchResultSet


class BackendClientInterface(ClientInterface):
    """
    Gateway to the backend of record: file metadata CRUD, document search,
    chat message persistence and chat completion.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "backend"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_files(self) -> str:
        """
        Returns the endpoint path for listing and uploading files (e.g. "/files").
        """
        pass

    @abstractmethod
    def _get_endpoint_file_details(self, document_id: int) -> str:
        """
        Returns the endpoint path for reading, updating and deleting one file (e.g. "/files/{id}").
        """
        pass

    @abstractmethod
    def _get_endpoint_file_download(self, document_id: int) -> str:
        """
        Returns the endpoint path for downloading the stored file content (e.g. "/files/{id}/download").
        """
        pass

    @abstractmethod
    def _get_endpoint_search(self) -> str:
        """
        Returns the endpoint path for full text document search (e.g. "/documents/search").
        """
        pass

    @abstractmethod
    def _get_endpoint_chat_messages(self) -> str:
        """
        Returns the endpoint path for chat message persistence (e.g. "/chat-messages").
        """
        pass

    @abstractmethod
    def _get_endpoint_chat(self) -> str:
        """
        Returns the endpoint path for chat completion (e.g. "/chat").
        """
        pass

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def _parse_endpoint_file(self, response: dict) -> DocumentRecord:
        pass

    @abstractmethod
    def _parse_endpoint_search(self, response: dict) -> SearchResultSet:
        pass

    @abstractmethod
    def _parse_endpoint_chat_message(self, response: dict) -> ChatMessageRecord:
        pass

    @abstractmethod
    def _parse_endpoint_chat(self, response: dict) -> str:
        """
        Extracts the generated assistant text from a chat completion response.

        Raises:
            ApiError: If the response carries an error instead of a message.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    ############# FILES ##############
    async def do_fetch_files(
        self,
        search: str | None = None,
        author: str | None = None,
        file_type: str | None = None,
        search_field: str | None = None,
    ) -> list[DocumentRecord]:
        """
        Lists file metadata, optionally filtered.

        Args:
            search (str | None): Free text matched against filename and content.
            author (str | None): Exact author filter.
            file_type (str | None): File type filter (e.g. "pdf").
            search_field (str | None): Restricts the free text match to one field.

        Returns:
            list[DocumentRecord]: The matching documents in server order.

        Raises:
            ApiError: If the request fails.
        """
        params = {"search": search or None, "author": author or None, "fileType": file_type or None, "searchField": search_field or None}
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_files(), params=params, raise_on_error=True)
        documents = [self._parse_endpoint_file(item) for item in resp.json()]
        self.logging.debug("Fetched %d file(s) from %s with filters %s", len(documents), self._get_engine_name(), {k: v for k, v in params.items() if v})
        return documents

    async def do_fetch_file(self, document_id: int) -> DocumentRecord:
        """
        Fetches one document's metadata.

        Raises:
            ApiError: not_found if the document does not exist, otherwise per failure.
        """
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_file_details(document_id), raise_on_error=True)
        return self._parse_endpoint_file(resp.json())

    async def do_upload_file(self, file: UploadFile, author: str) -> DocumentRecord:
        """
        Uploads a new file.

        Args:
            file (UploadFile): The file to upload.
            author (str): The author recorded with the file.

        Returns:
            DocumentRecord: The created record.

        Raises:
            ApiError: conflict if (filename, author) already exists, otherwise per failure.
        """
        resp = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_files(),
            data={"author": author},
            files={"file": (file.filename, file.content, file.content_type)},
            raise_on_error=True,
        )
        document = self._parse_endpoint_file(resp.json())
        self.logging.info("Uploaded '%s' by '%s' as document %d", file.filename, author, document.id)
        return document

    async def do_update_file(self, document_id: int, author: str | None = None, file: UploadFile | None = None) -> DocumentRecord:
        """
        Updates a document in place: new author, new file content, or both.

        Returns:
            DocumentRecord: The authoritative record after the update.

        Raises:
            ApiError: validation if neither author nor file is given, otherwise per failure.
        """
        if not author and file is None:
            raise ApiError.validation("Nothing to update: provide an author or a file.")
        data = {"author": author} if author else None
        files = {"file": (file.filename, file.content, file.content_type)} if file is not None else None
        resp = await self.do_request(
            method="PATCH",
            endpoint=self._get_endpoint_file_details(document_id),
            data=data,
            files=files,
            raise_on_error=True,
        )
        document = self._parse_endpoint_file(resp.json())
        self.logging.info("Updated document %d (author=%s, file=%s)", document_id, bool(author), file.filename if file else None)
        return document

    async def do_delete_file(self, document_id: int) -> None:
        """
        Deletes a document.

        Raises:
            ApiError: If the request fails.
        """
        await self.do_request(method="DELETE", endpoint=self._get_endpoint_file_details(document_id), raise_on_error=True)
        self.logging.info("Deleted document %d", document_id)

    async def do_download_file(self, document_id: int) -> bytes:
        """
        Downloads the stored file content.

        Raises:
            ApiError: If the request fails.
        """
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_file_download(document_id), raise_on_error=True)
        return resp.content

    ############# SEARCH ##############
    async def do_search_documents(self, query: SearchQuery) -> SearchResultSet:
        """
        Runs a full text search.

        Raises:
            ApiError: If the request fails.
        """
        resp = await self.do_request(method="POST", endpoint=self._get_endpoint_search(), json=query.to_payload(), raise_on_error=True)
        result_set = self._parse_endpoint_search(resp.json())
        self.logging.debug("Search %r returned %d of %d hit(s) in %d ms", query.query, len(result_set.results), result_set.total_hits, result_set.search_time_ms)
        return result_set

    ############# CHAT ##############
    async def do_save_chat_message(self, role: ChatRole, content: str, session_id: str) -> ChatMessageRecord:
        """
        Persists one chat message for a session.

        Raises:
            ApiError: If the request fails.
        """
        body = {"role": role.value, "content": content, "sessionId": session_id}
        resp = await self.do_request(method="POST", endpoint=self._get_endpoint_chat_messages(), json=body, raise_on_error=True)
        return self._parse_endpoint_chat_message(resp.json())

    async def do_fetch_chat_messages(self, session_id: str) -> list[ChatMessageRecord]:
        """
        Lists the persisted messages of a session, oldest first.

        Raises:
            ApiError: If the request fails.
        """
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_chat_messages(), params={"sessionId": session_id}, raise_on_error=True)
        return [self._parse_endpoint_chat_message(item) for item in resp.json()]

    async def do_delete_chat_messages(self, session_id: str) -> None:
        """
        Deletes all persisted messages of a session.

        Raises:
            ApiError: If the request fails.
        """
        await self.do_request(method="DELETE", endpoint=self._get_endpoint_chat_messages(), params={"sessionId": session_id}, raise_on_error=True)
        self.logging.info("Deleted chat history of session %s", session_id)

    async def do_generate_chat_completion(self, request: ChatCompletionRequest) -> str:
        """
        Asks the backend for an assistant reply grounded in the document metadata.

        Returns:
            str: The generated assistant text.

        Raises:
            ApiError: If the request fails or the backend reports an error.
        """
        body = request.model_dump(by_alias=True, mode="json")
        resp = await self.do_request(method="POST", endpoint=self._get_endpoint_chat(), json=body, raise_on_error=True)
        return self._parse_endpoint_chat(resp.json())
