"""Template sources, keyed by template id."""

CADDY = """\
# Generated by cerberus for {{ project }}: {{ node.name }} (layer {{ proxy.layer }})
{% macro site(domain) %}{% if tls.enabled %}{{ domain }}:{{ proxy.internal_port }}{% else %}http://{{ domain }}:{{ proxy.internal_port }}{% endif %}{% endmacro %}
{% macro site_tls(domain) %}{% set cert = domain | cert_for(tls.certificates) %}{% if cert %}    tls {{ cert.cert_file }} {{ cert.key_file }}
{% endif %}{% endmacro %}
{
{% if settings.auto_https != "on" %}
    auto_https {{ settings.auto_https }}
{% endif %}
{% if settings.admin != "on" %}
    admin {{ settings.admin }}
{% endif %}
}

(access_log) {
    log {
        output file {{ log_dir }}/access.log
        format {{ logging.format | log_format("caddy") }}
        level {{ logging.level | log_level("caddy") }}
    }
}
{% for route in proxy.routes %}

{{ site(route.domain) }} {
    import access_log
{{ site_tls(route.domain) }}
{% if route.type == "conditional" %}
    @bypass path {{ route.bypass_paths | join(" ") }}
    handle @bypass {
        reverse_proxy {{ route.upstream.url }}
    }
    handle {
        reverse_proxy {{ proxy.default_upstream.url }}
    }
{% else %}
    reverse_proxy {{ route.upstream.url }}
{% endif %}
}
{% endfor %}
{% for service in proxy.services %}

{{ site(service.domain) }} {
    import access_log
{{ site_tls(service.domain) }}
{% if service.compress %}
    encode gzip zstd
{% endif %}
    request_body {
        max_size {{ service.max_body_size | upper }}
    }
{% for name, value in service.response_headers.items() %}
    header {{ name }} {{ value | quote }}
{% endfor %}
    reverse_proxy {{ service.upstream.url }} {
{% for name, value in service.headers.items() %}
        header_up {{ name }} {{ value | quote }}
{% endfor %}
    }
}
{% endfor %}

:{{ proxy.internal_port }} {
    import access_log
    handle {{ health_path }} {
        respond "OK" 200
    }
    handle {
{% if proxy.default_upstream %}
        reverse_proxy {{ proxy.default_upstream.url }}
{% else %}
        respond "Not Found" 404
{% endif %}
    }
}
"""

NGINX = """\
# Generated by cerberus for {{ project }}: {{ node.name }} (layer {{ proxy.layer }})
{% macro forward(url, headers={}) %}
            proxy_pass {{ url }};
            proxy_http_version 1.1;
{% for name, value in forward_headers | merge_headers(headers) %}
            proxy_set_header {{ name }} {{ value }};
{% endfor %}
{% endmacro %}
worker_processes auto;

events {
    worker_connections {{ proxy.max_connections }};
}

http {
    access_log {{ log_dir }}/access.log;
    error_log {{ log_dir }}/error.log {{ logging.level | log_level("nginx") }};

    map $http_upgrade $connection_upgrade {
        default upgrade;
        ''      close;
    }
{% for route in proxy.routes %}

    server {
        listen {{ proxy.internal_port }};
        server_name {{ route.domain }};
{% if route.type == "conditional" %}
{% for path in route.bypass_paths %}

        location {{ path | path_prefix }} {
            {{ forward(route.upstream.url) | trim }}
        }
{% endfor %}

        location / {
            {{ forward(proxy.default_upstream.url) | trim }}
        }
{% else %}

        location / {
            {{ forward(route.upstream.url) | trim }}
        }
{% endif %}
    }
{% endfor %}
{% for service in proxy.services %}

    server {
        listen {{ proxy.internal_port }};
        server_name {{ service.domain }};
        client_max_body_size {{ service.max_body_size }};
{% if service.compress %}
        gzip on;
        gzip_proxied any;
{% endif %}

        location / {
            {{ forward(service.upstream.url, service.headers) | trim }}
{% for name, value in service.response_headers.items() %}
            add_header {{ name }} {{ value | quote }} always;
{% endfor %}
        }
    }
{% endfor %}

    server {
        listen {{ proxy.internal_port }} default_server;
        server_name _;

        location = {{ health_path }} {
            access_log off;
            return 200 "OK\\n";
        }

        location / {
{% if proxy.default_upstream %}
            {{ forward(proxy.default_upstream.url) | trim }}
{% else %}
            return 404;
{% endif %}
        }
    }
}
"""

HAPROXY = """\
# Generated by cerberus for {{ project }}: {{ node.name }} (layer {{ proxy.layer }})
{% macro server(name, upstream) %}
    server {{ name }} {{ upstream.address }}{{ " ssl verify none" if upstream.scheme == "https" else "" }} check{% endmacro %}
global
    maxconn {{ proxy.max_connections }}
    log stdout format raw local0 {{ logging.level | log_level("haproxy") }}

defaults
    mode http
    log global
    option httplog
    option forwardfor
    timeout connect 5s
    timeout client 50s
    timeout server 50s
    default-server init-addr last,libc,none

frontend http_in
    bind *:{{ proxy.internal_port }}
    http-request return status 200 content-type text/plain string "OK" if { path {{ health_path }} }
{% for route in proxy.routes %}
    acl route_{{ loop.index }}_host hdr(host) -i {{ route.domain }} {{ route.domain }}:{{ proxy.internal_port }}
{% if route.type == "conditional" %}
    acl route_{{ loop.index }}_bypass path_beg {{ route.bypass_paths | map("path_prefix") | join(" ") }}
    use_backend route_{{ loop.index }} if route_{{ loop.index }}_host route_{{ loop.index }}_bypass
    use_backend default_upstream if route_{{ loop.index }}_host
{% else %}
    use_backend route_{{ loop.index }} if route_{{ loop.index }}_host
{% endif %}
{% endfor %}
{% for service in proxy.services %}
    acl service_{{ loop.index }}_host hdr(host) -i {{ service.domain }} {{ service.domain }}:{{ proxy.internal_port }}
    use_backend service_{{ loop.index }} if service_{{ loop.index }}_host
{% endfor %}
    default_backend {{ "default_upstream" if proxy.default_upstream else "not_found" }}
{% for route in proxy.routes %}

backend route_{{ loop.index }}
    balance {{ proxy.algorithm or "roundrobin" }}
{{ server("route_" ~ loop.index, route.upstream) }}
{% endfor %}
{% for service in proxy.services %}

backend service_{{ loop.index }}
    balance {{ proxy.algorithm or "roundrobin" }}
{% if service.compress %}
    compression algo gzip
{% endif %}
    option http-buffer-request
    http-request deny deny_status 413 if { req.body_size gt {{ service.max_body_size | size_bytes }} }
{% for name, value in service.headers.items() %}
    http-request set-header {{ name }} {{ value | quote }}
{% endfor %}
{% for name, value in service.response_headers.items() %}
    http-response set-header {{ name }} {{ value | quote }}
{% endfor %}
{{ server("service_" ~ loop.index, service.upstream) }}
{% endfor %}

{% if proxy.default_upstream %}
backend default_upstream
    balance {{ proxy.algorithm or "roundrobin" }}
{{ server("default", proxy.default_upstream) }}
{% else %}
backend not_found
    http-request return status 404
{% endif %}
"""

TRAEFIK = """\
# Generated by cerberus for {{ project }}: {{ node.name }} (layer {{ proxy.layer }})
# Static and dynamic configuration share this file; the file provider reads
# the http section back from it.
entryPoints:
  web:
    address: ":{{ proxy.internal_port }}"

ping:
  entryPoint: web

log:
  level: {{ logging.level | log_level("traefik") }}

accessLog:
  filePath: "{{ log_dir }}/access.log"
  format: {{ logging.format | log_format("traefik") }}

providers:
  file:
    filename: {{ config_target }}
{% if proxy.routes or proxy.services or proxy.default_upstream %}

http:
  routers:
{% for route in proxy.routes %}
{% if route.type == "conditional" %}
    route-{{ loop.index }}-bypass:
      entryPoints: [web]
      rule: {{ ("Host(`" ~ route.domain ~ "`) && (" ~ (route.bypass_paths | map("traefik_path") | join(" || ")) ~ ")") | quote }}
      priority: 200
      service: route-{{ loop.index }}
    route-{{ loop.index }}:
      entryPoints: [web]
      rule: {{ ("Host(`" ~ route.domain ~ "`)") | quote }}
      priority: 100
      service: default-upstream
{% else %}
    route-{{ loop.index }}:
      entryPoints: [web]
      rule: {{ ("Host(`" ~ route.domain ~ "`)") | quote }}
      priority: 100
      service: route-{{ loop.index }}
{% endif %}
{% endfor %}
{% for service in proxy.services %}
    service-{{ loop.index }}:
      entryPoints: [web]
      rule: {{ ("Host(`" ~ service.domain ~ "`)") | quote }}
      priority: 100
      service: service-{{ loop.index }}
      middlewares:
        - service-{{ loop.index }}-limits
{% if service.compress %}
        - service-{{ loop.index }}-compress
{% endif %}
{% if service.headers or service.response_headers %}
        - service-{{ loop.index }}-headers
{% endif %}
{% endfor %}
{% if proxy.default_upstream %}
    default:
      entryPoints: [web]
      rule: "PathPrefix(`/`)"
      priority: 1
      service: default-upstream
{% endif %}
{% if proxy.services %}

  middlewares:
{% for service in proxy.services %}
    service-{{ loop.index }}-limits:
      buffering:
        maxRequestBodyBytes: {{ service.max_body_size | size_bytes }}
{% if service.compress %}
    service-{{ loop.index }}-compress:
      compress: {}
{% endif %}
{% if service.headers or service.response_headers %}
    service-{{ loop.index }}-headers:
      headers:
{% if service.headers %}
        customRequestHeaders:
{% for name, value in service.headers.items() %}
          {{ name | quote }}: {{ value | quote }}
{% endfor %}
{% endif %}
{% if service.response_headers %}
        customResponseHeaders:
{% for name, value in service.response_headers.items() %}
          {{ name | quote }}: {{ value | quote }}
{% endfor %}
{% endif %}
{% endif %}
{% endfor %}
{% endif %}

  services:
{% for route in proxy.routes %}
    route-{{ loop.index }}:
      loadBalancer:
        servers:
          - url: "{{ route.upstream.url }}"
{% endfor %}
{% for service in proxy.services %}
    service-{{ loop.index }}:
      loadBalancer:
        servers:
          - url: "{{ service.upstream.url }}"
{% endfor %}
{% if proxy.default_upstream %}
    default-upstream:
      loadBalancer:
        servers:
          - url: "{{ proxy.default_upstream.url }}"
{% endif %}
{% endif %}
"""

DOCKERFILE = """\
# Generated by cerberus for {{ project }}: image for {{ kind }} proxies
FROM {{ image }}

{% if user %}
USER root
{% endif %}
RUN mkdir -p {{ log_dir }}{{ (" && chown " ~ user ~ " " ~ log_dir) if user else "" }}
{% if user %}
USER {{ user }}
{% endif %}

{% for port in ports %}
EXPOSE {{ port }}
{% endfor %}

LABEL cerberus.project="{{ project }}" cerberus.type="{{ kind }}"

HEALTHCHECK --interval=30s --timeout=10s --retries=3 \\
    CMD wget -q --spider http://localhost:{{ ports[0] }}{{ health_path }} || exit 1
"""

COMPOSE = """\
# Generated by cerberus for project {{ project }}. Regenerate from the config instead of editing.
{{ document | to_yaml }}"""

BOT_POLICY = """\
{{ policy | to_json }}
"""

TEMPLATES = {
    "caddy": CADDY,
    "nginx": NGINX,
    "haproxy": HAPROXY,
    "traefik": TRAEFIK,
    "dockerfile": DOCKERFILE,
    "compose": COMPOSE,
    "bot_policy": BOT_POLICY,
}
