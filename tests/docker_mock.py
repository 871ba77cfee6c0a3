import random

import docker
import requests


def cid():
    return "".join(random.sample("0123456789abcdef" * 10, 64))


class Network:
    def __init__(self, nets, **kwargs):
        self.nets = nets
        self.__dict__.update(kwargs)

    def remove(self, **_):
        self.nets.pop(self.name, None)


class Networks:
    def __init__(self):
        self.nets = {}

    def list(self, names):
        return list(filter(None, [self.nets.get(name) for name in names]))

    def create(self, **kwargs):
        self.nets[kwargs["name"]] = Network(self.nets, **kwargs)
        return self.nets[kwargs["name"]]

    def get(self, name):
        if name not in self.nets:
            raise docker.errors.NotFound(name)
        return self.nets[name]


class Container:
    """
    Pretends to run `bash -c <cmd>`. Commands of the form `exit N` exit with
    N, `hang` never finishes and everything else echoes itself.
    """

    def __init__(self, containers, **kwargs):
        self.id = cid()
        self.containers = containers
        self.__dict__.update(kwargs)
        self.cmd = kwargs["command"][-1]
        self.stopped = False

    def wait(self, timeout=None):
        if self.cmd == "hang":
            raise requests.exceptions.ReadTimeout("hang")
        code = int(self.cmd.split()[1]) if self.cmd.startswith("exit ") else 0
        return {"StatusCode": code, "Error": None}

    def logs(self, stdout=True, stderr=True):
        if stdout and not stderr:
            return f"{self.cmd}\n".encode()
        return b""

    def stop(self, **_):
        self.stopped = True

    def remove(self, **_):
        self.containers.boxes.pop(self.id, None)


class Containers:
    def __init__(self):
        self.boxes = {}
        self.runs = []

    def run(self, **kwargs):
        if kwargs["image"] == "missing:latest":
            raise docker.errors.ImageNotFound("missing:latest")
        c = Container(self, **kwargs)
        self.boxes[c.id] = c
        self.runs.append(c)
        return c


class Docker:
    def __init__(self):
        self.networks = Networks()
        self.containers = Containers()
