# vim: ts=4:sw=4:sts=4:et:ft=python
# -*- mode: python; tab-width: 4; indent-tabs-mode: nil; -*-
#
# GNU General Public License v3.0+
# SPDX-License-Identifier: GPL-3.0-or-later
# (see COPYING or https://www.gnu.org/licenses/gpl-3.0.txt)
#
# Copyright (c) 2025 oØ.o (@o0-o)
#
# This file is part of the o0_o.hostfacts Ansible Collection.

DOCUMENTATION = r'''
---
module: facts
short_description: Gather host facts on the machine running the task
version_added: '1.0.0'
description:
  - Collects kernel, operating system, hardware (DMI), virtualization,
    networking and memory facts, plus external facts from fact
    directories.
  - Each fact domain is resolved at most once; a domain that fails or
    whose sources are missing is omitted rather than failing the task.
  - Facts describe the Ansible controller. The task must use the local
    connection, for example C(delegate_to: localhost) or
    C(connection: local); any other connection fails the task.
options:
  gather_subset:
    description:
      - List of fact subsets to gather.
      - Use C(all) to gather all available facts.
      - Use C(!subset) to exclude specific subsets.
      - A list made only of exclusions starts from C(all).
    type: list
    elements: str
    default: [all]
    choices:
      - all
      - kernel
      - os
      - dmi
      - virtual
      - networking
      - memory
      - external
      - '!all'
      - '!kernel'
      - '!os'
      - '!dmi'
      - '!virtual'
      - '!networking'
      - '!memory'
      - '!external'
  external_dirs:
    description:
      - Directories scanned for external fact files.
      - Files ending in C(.txt) hold C(key=value) lines, C(.json),
        C(.yaml) and C(.yml) files hold a mapping, and executables
        (including C(.ps1) scripts) print C(key=value) lines.
      - Defaults to C(/etc/o0_o/facts.d) and C(/etc/facter/facts.d).
    type: list
    elements: path
  timeout:
    description:
      - Seconds any single command or external fact script may run
        before it is killed.
    type: float
    default: 30
author:
  - oØ.o (@o0-o)
seealso:
  - module: ansible.builtin.setup
notes:
  - This module must be run via its action plugin.
  - Facts are resolved by the action plugin on the controller, so they
    can not be gathered from remote hosts over their connection.
requirements:
  - jc
  - psutil
  - PyYAML
attributes:
  check_mode:
    description: This module supports check mode.
    support: full
  async:
    description: This module does not support async operation.
    support: none
  platform:
    description: Linux, BSD and other POSIX platforms are supported.
    support: full
    platforms: posix
'''

EXAMPLES = r'''
- name: Gather all facts about the controller
  o0_o.hostfacts.facts:
  delegate_to: localhost

- name: Gather only operating system facts
  o0_o.hostfacts.facts:
    gather_subset:
      - os

- name: Everything except external facts
  o0_o.hostfacts.facts:
    gather_subset:
      - '!external'

- name: Read external facts from a custom directory
  o0_o.hostfacts.facts:
    gather_subset:
      - external
    external_dirs:
      - /opt/site/facts.d
    timeout: 10
'''

RETURN = r'''
ansible_facts:
  description: Dictionary of gathered facts.
  returned: always
  type: dict
  contains:
    o0_facts:
      description: Fact name to value for every gathered fact.
      type: dict
      returned: always
      sample:
        kernel: Linux
        kernelrelease: 6.1.0-18-amd64
        kernelmajversion: "6.1"
        operatingsystem: Debian
        osfamily: Debian
        virtual: kvm
        is_virtual: true
        memorysize_mb: 3919.63
        networking:
          hostname: web01
          primary: eth0
'''

from ansible.module_utils.basic import AnsibleModule


def main():
    """Fail if this module is run directly without the action plugin."""
    subsets = [
        'kernel', 'os', 'dmi', 'virtual', 'networking', 'memory', 'external'
    ]
    argument_spec = {
        'gather_subset': {
            'type': 'list',
            'elements': 'str',
            'default': ['all'],
            'choices': ['all', '!all'] + subsets + ['!' + s for s in subsets],
        },
        'external_dirs': {'type': 'list', 'elements': 'path'},
        'timeout': {'type': 'float', 'default': 30},
    }

    module = AnsibleModule(
        argument_spec=argument_spec,
        supports_check_mode=True
    )

    module.fail_json(msg='This module must be run via its action plugin.')


if __name__ == '__main__':
    main()
