"""Clients for the two external boundaries: block input and GraphQL output."""

from devhind.clients.graphql import GraphQLClient
from devhind.clients.lake import FileBlockSource, parse_streamer_message

__all__ = [
    "GraphQLClient",
    "FileBlockSource",
    "parse_streamer_message",
]
