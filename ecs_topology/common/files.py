#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Functions to render a template into a file on the local filesystem
"""

from os import makedirs, path

from troposphere import Template

from ecs_topology.common.logging import LOG

JSON_MIME = "application/json"
YAML_MIME = "application/x-yaml"


class TemplateFile(object):
    """
    Class to handle the CloudFormation template rendered from the topology, and write it to disk.

    :cvar str file_name: the base name of the file, without extension
    :cvar str file_path: Output file path, once written
    :cvar str body: The rendered content
    :cvar str mime: MIME-type of the file
    """

    file_path = None

    def __init__(self, file_name, template, file_format="json"):
        """
        Init method for TemplateFile

        :param str file_name: Name of the file, without extension. Mandatory
        :param troposphere.Template template: the template to render
        :param str file_format: json or yaml
        """
        if not isinstance(template, Template):
            raise TypeError("template must be of type", Template, "got", type(template))
        if file_format not in ["json", "yaml"]:
            raise ValueError("file_format must be one of", ["json", "yaml"], "Got", file_format)
        self.template = template
        self.file_name = file_name
        self.file_format = file_format
        self.mime = JSON_MIME if file_format == "json" else YAML_MIME
        self.body = self.define_body()

    def __repr__(self):
        return self.file_path if self.file_path else f"{self.file_name}.{self.file_format}"

    def define_body(self) -> str:
        if self.file_format == "yaml":
            return self.template.to_yaml()
        return self.template.to_json()

    def write(self, output_dir):
        """
        Writes the template into the output directory, created if it does not exist.

        :param str output_dir: path to the directory
        :return: the path of the file
        :rtype: str
        """
        makedirs(output_dir, exist_ok=True)
        self.file_path = path.abspath(
            path.join(output_dir, f"{self.file_name}.{self.file_format}")
        )
        with open(self.file_path, "w") as template_fd:
            template_fd.write(self.body)
        LOG.info(f"Template for {self.file_name} written to {self.file_path}")
        return self.file_path
