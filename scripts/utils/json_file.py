import json
import os


def load(filename, default=None):
    # loads the json content of a file
    # (FileNotFoundError is raised if it doesn't exist and no default is given)

    if default is not None and not os.path.exists(filename):
        return default

    with open(filename) as file:
        return json.load(file)


def save(filename, content=None):
    # saves the json content to a file, creating parent folders

    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(filename, "w") as outfile:
        json.dump(
            content if content is not None else {},
            outfile,
            indent=2,
        )

    return filename
