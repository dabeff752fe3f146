#flowfix/structural/schema.py

# Per-node shape. Only "id" and "type" are hard requirements; the other
# properties are recommended and produce warnings when missing or malformed.
NODE_SCHEMA = {
    "type": "object",
    "required": ["id", "name", "type", "parameters", "position", "typeVersion"],
    "properties": {
        "id": {
            "type": ["string", "number"],
            "minLength": 1
        },
        "name": {
            "type": "string",
            "minLength": 1
        },
        "type": {
            "type": "string",
            "minLength": 1
        },
        "parameters": {
            "type": "object"
        },
        # n8n export layout: [x, y]
        "position": {
            "type": "array",
            "items": {"type": "number"},
            "minItems": 2,
            "maxItems": 2
        },
        "typeVersion": {
            "type": ["integer", "number"]
        },
        "credentials": {
            "type": "object"
        }
    },
    "additionalProperties": True
}


# Document-level properties other than "nodes" (which is checked by hand so
# the validator can stop early when it is unusable).
WORKFLOW_SCHEMA = {
    "type": "object",
    "required": ["name", "connections", "active", "settings", "id"],
    "properties": {
        "name": {
            "type": "string",
            "minLength": 1
        },
        "connections": {
            "type": "object",

            # source node id -> output slot name -> list of groups -> list of hops
            "additionalProperties": {
                "type": "object",
                "additionalProperties": {
                    "type": "array",
                    "items": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["node"],
                            "properties": {
                                "node": {"type": "string"},
                                "type": {"type": "string"},
                                "index": {"type": "integer", "minimum": 0}
                            },
                            "additionalProperties": True
                        }
                    }
                }
            }
        },
        "active": {
            "type": "boolean"
        },
        "settings": {
            "type": "object"
        },
        "id": {
            "type": ["string", "number"]
        },
        "tags": {
            "type": "array"
        },
        "meta": {
            "type": "object"
        }
    },
    "additionalProperties": True
}
