# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vc2vc/cli/help_texts.py
from __future__ import annotations

# Pure help text rendered into the argparse epilog. No imports here.

YAML_EXAMPLE = r"""# vc2vc configuration example (YAML)
#
# Run:
#   vc2vc --config migrate.yaml
#
# Merge configs (later overrides earlier):
#   vc2vc --config base.yaml --config wave-3.yaml --max-concurrent 4
#
# Keys may use '-' or '_' (max-concurrent == max_concurrent).
# CLI flags always override config values.

input: ./wave-3.csv               # CSV, YAML or JSON list of rows
report: ./wave-3-report.csv
report_format: csv                # csv | json

free_buffer_percent: 20           # keep 20% of datastore capacity free
max_concurrent: 2                 # relocations in flight at once
poll_interval: 5                  # seconds between task polls
poll_workers: 1                   # >1: read task states concurrently
max_poll_errors: 5                # consecutive poll failures before Failed
reserve_placement: false          # count in-flight items against capacity
power_on_after: true              # power on VMs that were off at the source
dry_run: false                    # validate + place only, submit nothing

vc_user: administrator@vsphere.local
vc_password_env: VC_PASSWORD
vc_port: 443
vc_insecure: false
connect_attempts: 3

vc_credentials:                   # per-endpoint overrides
  vc-b.example.com:
    user: migrator@vsphere.local
    password_env: VC_B_PASSWORD

notify_enabled: true
notify_on_start: false
webhook_url: https://hooks.slack.com/services/XXX
webhook_type: slack               # slack | discord | generic
email_to: ops@example.com
email_from: vc2vc@example.com
email_smtp_host: smtp.example.com
"""

CSV_EXAMPLE = r"""VMName,Application,SourceVC,TargetVC,TargetFolder,TargetCluster,TargetDatastore,TargetSwitch,TargetPortGroup,SwitchType
app01,Billing,vc-a.example.com,vc-b.example.com,Billing,CL-PROD-01,DSC-PROD,DVS-PROD,PG-APP,vds
db01,Billing,vc-a.example.com,vc-b.example.com,,CL-PROD-01,DS-PROD-07,DVS-PROD,"PG-DB,PG-BACKUP",vds
"""

FEATURE_SUMMARY = r"""  - Input: CSV (header names are case/format-insensitive) or YAML/JSON list
  - Validation per row: vm -> datastore -> capacity -> cluster/host -> network
  - Placement: emptiest datastore of a datastore cluster, least loaded host
  - At most --max-concurrent relocations in flight; items submitted in input order
  - Report in input order; exit code 1 if any row was Rejected or Failed
"""
