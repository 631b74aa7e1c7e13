"""
Default category metadata for the blog: accounts, articles and comments.

Each field is a plain dict so metadata can also be loaded from JSON:
  name         field name
  friendlyName human readable label
  forbidden    actions for which the field may not be specified
  required     actions for which the field must be specified
  identifies   category whose id this field references
  doIndex      index hint for backing media that support indexes
  type         value type: string | strings | datetime
  choices      allowed values (elements, for strings)
  match        find matching mode: eq | superset | le
"""

from typing import Any, Dict, List

ACTIONS = ("create", "find", "remove", "update")

ROLES = ["admin", "author", "commenter"]

_TIMESTAMPS: List[Dict[str, Any]] = [
    {
        "name": "creationTime",
        "friendlyName": "Creation Time",
        "forbidden": ["create", "remove", "update"],
        "type": "datetime",
        "match": "le",
    },
    {
        "name": "updateTime",
        "friendlyName": "Update Time",
        "forbidden": ["create", "find", "remove", "update"],
        "type": "datetime",
    },
]

BLOG_META: Dict[str, List[Dict[str, Any]]] = {
    "accounts": [
        {
            "name": "id",
            "friendlyName": "Account ID",
            "required": ["create", "remove", "update"],
            "doIndex": True,
            "type": "string",
        },
        {
            "name": "email",
            "friendlyName": "Email",
            "forbidden": ["remove"],
            "doIndex": True,
            "type": "string",
        },
        {
            "name": "firstName",
            "friendlyName": "First Name",
            "forbidden": ["remove"],
            "type": "string",
        },
        {
            "name": "lastName",
            "friendlyName": "Last Name",
            "forbidden": ["remove"],
            "type": "string",
        },
        {
            "name": "roles",
            "friendlyName": "Roles",
            "forbidden": ["remove"],
            "type": "strings",
            "choices": ROLES,
            "match": "superset",
        },
        *_TIMESTAMPS,
    ],
    "articles": [
        {
            "name": "id",
            "friendlyName": "Article ID",
            "forbidden": ["create"],
            "required": ["remove", "update"],
            "type": "string",
        },
        {
            "name": "title",
            "friendlyName": "Title",
            "forbidden": ["remove"],
            "required": ["create"],
            "type": "string",
        },
        {
            "name": "content",
            "friendlyName": "Content",
            "forbidden": ["find", "remove"],
            "type": "string",
        },
        {
            "name": "authorId",
            "friendlyName": "Author ID",
            "forbidden": ["remove", "update"],
            "required": ["create"],
            "identifies": "accounts",
            "doIndex": True,
            "type": "string",
        },
        {
            "name": "keywords",
            "friendlyName": "Keywords",
            "forbidden": ["remove"],
            "type": "strings",
            "match": "superset",
        },
        *_TIMESTAMPS,
    ],
    "comments": [
        {
            "name": "id",
            "friendlyName": "Comment ID",
            "forbidden": ["create"],
            "required": ["remove", "update"],
            "type": "string",
        },
        {
            "name": "content",
            "friendlyName": "Comment",
            "forbidden": ["find", "remove"],
            "required": ["create"],
            "type": "string",
        },
        {
            "name": "articleId",
            "friendlyName": "Article ID",
            "forbidden": ["remove", "update"],
            "required": ["create"],
            "identifies": "articles",
            "doIndex": True,
            "type": "string",
        },
        {
            "name": "commenterId",
            "friendlyName": "Commenter ID",
            "forbidden": ["remove", "update"],
            "required": ["create"],
            "identifies": "accounts",
            "doIndex": True,
            "type": "string",
        },
        *_TIMESTAMPS,
    ],
}
