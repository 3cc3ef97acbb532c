"""swtch: register docker containers in etcd for SkyDNS.

Follows the docker event stream and, for every container that starts, stops
or disappears, converges a per-container entry under /swtch/<id> and its
discovery keys under /skydns/ to the container's current address.
"""
